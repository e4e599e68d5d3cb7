"""
Enhancer session for one cropped design.

The enhancer keeps the toggle state of the filter catalog for a single
CroppedImage. Every toggle recomputes the preview from the original crop
through the catalog; nothing is patched incrementally.

Classes:
    Enhancer: Toggle state, preview and completion for one crop
"""

import logging
from typing import Any, FrozenSet, Iterable, Optional

from MK_Libs.constants import DEFAULT_OUTPUT_QUALITY
from MK_Libs.EnhanceLib.filter_catalog import FilterCatalog, get_default_catalog
from MK_Libs.errors import PipelineStateError, ProcessingError
from MK_Libs.ImageBufferLib.buffer_ops import decode_image, to_buffer
from MK_Libs.ImageBufferLib.image_models import CroppedImage, EncodedImage, FinalImage
from MK_Libs.in_flight import InFlightGuard

logger = logging.getLogger(__name__)


class Enhancer:
    """
    Enhancement session.

    Example:
        >>> enhancer = Enhancer(cropped)
        >>> enhancer.toggle("sharpen")
        >>> enhancer.toggle("contrast")
        >>> final = enhancer.complete()
    """

    def __init__(
        self,
        source: CroppedImage,
        catalog: Optional[FilterCatalog] = None,
        quality: float = DEFAULT_OUTPUT_QUALITY,
    ):
        """
        Args:
            source: The cropped buffer every recompute starts from
            catalog: Filter catalog (default catalog if None)
            quality: JPEG quality for previews and the final image

        Raises:
            ProcessingError: If the source cannot be decoded
        """
        self.source = source
        self.catalog = catalog or get_default_catalog()
        self.quality = quality
        self._source_image = decode_image(source)
        self._active: FrozenSet[str] = frozenset()
        self._preview: EncodedImage = source
        self._preview_image: Any = self._source_image
        self._guard = InFlightGuard("Enhancement")

    @property
    def active(self) -> FrozenSet[str]:
        return self._active

    @property
    def preview(self) -> EncodedImage:
        """Encoded buffer currently shown to the visitor."""
        return self._preview

    @property
    def preview_image(self) -> Any:
        return self._preview_image

    @property
    def busy(self) -> bool:
        return self._guard.busy

    def is_active(self, filter_id: str) -> bool:
        return filter_id in self._active

    def render(self, active: Iterable[str]) -> Any:
        """Apply ``active`` to the original crop. Pure; touches no state."""
        self._ensure_open()
        return self.catalog.apply_filters(self._source_image, active)

    def toggle(self, filter_id: str) -> EncodedImage:
        """
        Flip one filter and recompute the preview from the original crop.

        On failure the toggle state and the previous preview are kept.

        Raises:
            PipelineStateError: If filter_id is not in the catalog
            CaptureInProgressError: If a recompute is already running
            ProcessingError: If a filter or the encoder fails
        """
        if not self.catalog.has_filter(filter_id):
            raise PipelineStateError(
                f"Unknown enhancement filter: {filter_id}",
                user_message="This enhancement is not available",
            )

        if filter_id in self._active:
            new_active = self._active - {filter_id}
        else:
            new_active = self._active | {filter_id}

        return self.set_active(new_active)

    def set_active(self, active: Iterable[str]) -> EncodedImage:
        """Replace the whole active set and recompute the preview."""
        new_active = self.catalog.validate_active(active)

        with self._guard.hold():
            image = self.render(new_active)
            if new_active:
                preview = to_buffer(image, self.quality, EncodedImage)
            else:
                preview = self.source

            self._active = new_active
            self._preview = preview
            self._preview_image = image

        logger.debug(f"Active enhancements: {sorted(self._active)}")
        return self._preview

    def complete(self) -> FinalImage:
        """
        Produce the final image for the current active set.

        With no active filters the crop bytes are passed through unchanged.

        Raises:
            CaptureInProgressError: If a recompute is already running
            ProcessingError: If a filter or the encoder fails
        """
        with self._guard.hold():
            if not self._active:
                final = FinalImage(
                    data=self.source.data,
                    width=self.source.width,
                    height=self.source.height,
                    mime_type=self.source.mime_type,
                )
            else:
                image = self.render(self._active)
                final = to_buffer(image, self.quality, FinalImage)

        logger.info(
            f"Enhancement complete with {len(self._active)} filter(s) "
            f"({final.width}x{final.height})"
        )
        return final

    def reset(self) -> None:
        """Drop all active filters and show the original crop."""
        with self._guard.hold():
            self._active = frozenset()
            self._preview = self.source
            self._preview_image = self._source_image

    def release(self) -> None:
        """Free decoded images held by the session."""
        self._preview_image = None
        self._source_image = None
        self._preview = self.source

    def _ensure_open(self) -> None:
        if self._source_image is None:
            raise ProcessingError("Enhancer session was released")
