"""
Enhancement Filter Catalog.

This module provides the ordered catalog of enhancement filters. The catalog
order is fixed at registration time and is the only order in which filters
are ever applied: an active set is folded through the catalog left to right,
skipping inactive entries, so the result never depends on the order in which
the visitor toggled filters.

Classes:
    EnhancementFilter: One catalog entry
    FilterCatalog: Ordered registry of enhancement filters

Functions:
    build_default_catalog: Catalog with the four kiosk filters
    get_default_catalog: Global default catalog (singleton)
"""

import logging
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional

from MK_Libs.constants import FILTER_AUTO, FILTER_BACKGROUND, FILTER_CONTRAST, FILTER_SHARPEN
from MK_Libs.EnhanceLib.enhancement_filters import (
    apply_auto_levels,
    apply_background_removal,
    apply_contrast_stretch,
    apply_sharpen,
)
from MK_Libs.errors import KioskError, PipelineStateError, ProcessingError

logger = logging.getLogger(__name__)

# Type alias for filter functions: PIL Image -> PIL Image
FilterFunction = Callable[[Any], Any]


@dataclass(frozen=True)
class EnhancementFilter:
    """A named filter in the catalog.

    Attributes:
        filter_id: Stable identifier (e.g. "contrast")
        name: Label shown on the kiosk button
        apply: Callable taking and returning a PIL Image
        description: Human-readable description
        position: Display hint ('left' or 'right'); never affects order
    """
    filter_id: str
    name: str
    apply: FilterFunction
    description: str = ""
    position: str = "left"


class FilterCatalog:
    """
    Ordered registry of enhancement filters.

    Example:
        >>> catalog = FilterCatalog()
        >>> catalog.register("background", "Remove Background", apply_background_removal)
        >>> catalog.register("contrast", "Brighten", apply_contrast_stretch)
        >>> result = catalog.apply_filters(image, {"contrast", "background"})
    """

    def __init__(self):
        """Initialize an empty catalog."""
        self._filters: Dict[str, EnhancementFilter] = {}
        self._order: List[str] = []

    def register(
        self,
        filter_id: str,
        name: str,
        apply: FilterFunction,
        description: str = "",
        position: str = "left",
    ) -> EnhancementFilter:
        """
        Append a filter to the end of the catalog.

        Args:
            filter_id: Unique identifier for the filter
            name: Display name
            apply: Callable taking and returning a PIL Image
            description: Human-readable description
            position: Display hint ('left' or 'right')

        Returns:
            The registered EnhancementFilter

        Raises:
            ValueError: If filter_id is empty, apply is not callable, or position is unknown
            RuntimeError: If filter_id is already registered
        """
        filter_id = str(filter_id).strip()

        if not filter_id:
            raise ValueError("filter_id cannot be empty")

        if not callable(apply):
            raise ValueError(f"apply must be callable, got {type(apply)}")

        if position not in ("left", "right"):
            raise ValueError(f"position must be 'left' or 'right', got {position}")

        if filter_id in self._filters:
            raise RuntimeError(
                f"Filter '{filter_id}' is already registered. "
                f"Build a new catalog to replace it."
            )

        entry = EnhancementFilter(
            filter_id=filter_id,
            name=str(name),
            apply=apply,
            description=str(description),
            position=position,
        )
        self._filters[filter_id] = entry
        self._order.append(filter_id)

        logger.debug(f"Registered enhancement filter: {filter_id}")
        return entry

    def get_filter(self, filter_id: str) -> EnhancementFilter:
        """
        Look up a catalog entry.

        Raises:
            KeyError: If filter_id is not registered
        """
        filter_id = str(filter_id).strip()

        if filter_id not in self._filters:
            available = ", ".join(self._order)
            raise KeyError(
                f"No enhancement filter '{filter_id}'. Available filters: {available}"
            )

        return self._filters[filter_id]

    def has_filter(self, filter_id: str) -> bool:
        return str(filter_id).strip() in self._filters

    def list_filter_ids(self) -> List[str]:
        """Filter ids in catalog order."""
        return list(self._order)

    def filters(self) -> List[EnhancementFilter]:
        """Catalog entries in catalog order."""
        return [self._filters[filter_id] for filter_id in self._order]

    def filters_by_position(self, position: str) -> List[EnhancementFilter]:
        """Entries with a display position, still in catalog order."""
        return [entry for entry in self.filters() if entry.position == position]

    def validate_active(self, active: Iterable[str]) -> FrozenSet[str]:
        """
        Normalize an active set.

        Raises:
            PipelineStateError: If any id is not in the catalog
        """
        active_set = frozenset(str(filter_id).strip() for filter_id in active)
        unknown = sorted(active_set - set(self._order))
        if unknown:
            raise PipelineStateError(
                f"Unknown enhancement filters: {', '.join(unknown)}",
                user_message="This enhancement is not available",
            )
        return active_set

    def ordered_active(self, active: Iterable[str]) -> List[EnhancementFilter]:
        """Active entries in catalog order."""
        active_set = self.validate_active(active)
        return [self._filters[filter_id] for filter_id in self._order if filter_id in active_set]

    def apply_filters(self, image: Any, active: Iterable[str]) -> Any:
        """
        Fold the active filters over an image in catalog order.

        The input image is never modified; with an empty active set the input
        is returned as-is.

        Args:
            image: PIL Image
            active: Ids of the active filters, in any order

        Returns:
            Resulting PIL Image

        Raises:
            PipelineStateError: If active contains an unknown id
            ProcessingError: If a filter fails
        """
        result = image
        for entry in self.ordered_active(active):
            try:
                result = entry.apply(result)
            except KioskError:
                raise
            except Exception as e:
                logger.exception(f"Enhancement '{entry.filter_id}' failed")
                raise ProcessingError(
                    f"Enhancement '{entry.filter_id}' failed: {e}",
                    user_message="Failed to apply enhancement",
                ) from e
        return result


def build_default_catalog(
    background_threshold: int = 240,
    contrast_amount: float = 1.3,
    sharpen_amount: float = 0.5,
) -> FilterCatalog:
    """
    Build the kiosk catalog.

    Order: background removal, brighten, enhance details, magic fix.

    Args:
        background_threshold: Threshold for background removal
        contrast_amount: Multiplier for the brighten filter
        sharpen_amount: Kernel strength for enhance details

    Returns:
        A new FilterCatalog
    """
    catalog = FilterCatalog()

    catalog.register(
        FILTER_BACKGROUND,
        "Remove Background",
        partial(apply_background_removal, threshold=background_threshold),
        description="Whiten near-white paper around the drawing",
        position="left",
    )

    catalog.register(
        FILTER_CONTRAST,
        "Brighten",
        partial(apply_contrast_stretch, amount=contrast_amount),
        description="Contrast stretch around mid-gray",
        position="left",
    )

    catalog.register(
        FILTER_SHARPEN,
        "Enhance Details",
        partial(apply_sharpen, amount=sharpen_amount),
        description="Sharpen pencil and ink lines",
        position="right",
    )

    catalog.register(
        FILTER_AUTO,
        "Magic Fix",
        apply_auto_levels,
        description="Stretch brightness to the full range",
        position="right",
    )

    return catalog


# Global singleton catalog
_default_catalog: Optional[FilterCatalog] = None


def get_default_catalog() -> FilterCatalog:
    """
    Get the global default catalog (singleton) built with default amounts.
    """
    global _default_catalog

    if _default_catalog is None:
        _default_catalog = build_default_catalog()
        logger.info("Built default enhancement catalog")

    return _default_catalog
