"""
Design accumulator for one visitor's collection.

Collects finished designs with their category tag until the collection is
previewed and uploaded. Men's and women's designs are required; designs in
the 'others' category carry a custom category name.

Classes:
    CreatorDetails: Visitor contact details
    DesignUpload: One finished design with its category
    DesignAccumulator: Ordered list of designs for a collection
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from MK_Libs.constants import (
    CATEGORY_OTHERS,
    DEFAULT_CUSTOM_CATEGORY_NAME,
    DESIGN_CATEGORIES,
    REQUIRED_CATEGORIES,
)
from MK_Libs.errors import PipelineStateError, UploadValidationError
from MK_Libs.ImageBufferLib.image_models import FinalImage

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Asks the visitor to name an 'others' design; None or "" means no answer
NameProvider = Callable[[], Optional[str]]


@dataclass
class CreatorDetails:
    name: str
    email: str = ""
    phone: str = ""
    collection_name: str = ""
    location: str = ""

    def validate(self) -> None:
        """
        Raises:
            UploadValidationError: If the name is missing or the email is malformed
        """
        if not self.name.strip():
            raise UploadValidationError("Creator name missing", user_message="Name is required")

        if self.email and not EMAIL_PATTERN.match(self.email.strip()):
            raise UploadValidationError(
                f"Invalid email: {self.email!r}",
                user_message="Please enter a valid email address",
            )


@dataclass(frozen=True)
class DesignUpload:
    category: str
    image: FinalImage
    custom_category_name: Optional[str] = None
    is_required: bool = False


class DesignAccumulator:
    """Designs collected so far, in the order they were finished."""

    def __init__(self):
        self._designs: List[DesignUpload] = []

    def __len__(self) -> int:
        return len(self._designs)

    @property
    def designs(self) -> Tuple[DesignUpload, ...]:
        return tuple(self._designs)

    def add(
        self,
        image: FinalImage,
        category: Optional[str],
        name_provider: Optional[NameProvider] = None,
    ) -> DesignUpload:
        """
        Append a finished design.

        Args:
            image: Final enhanced buffer
            category: 'men', 'women' or 'others'
            name_provider: Asked for a name when category is 'others'

        Returns:
            The stored DesignUpload

        Raises:
            PipelineStateError: If no valid category is given
        """
        if category not in DESIGN_CATEGORIES:
            raise PipelineStateError(
                f"No design category selected (got {category!r})",
                user_message="Please choose a design category first",
            )

        custom_name = None
        if category == CATEGORY_OTHERS:
            answer = name_provider() if name_provider else None
            custom_name = (answer or "").strip() or DEFAULT_CUSTOM_CATEGORY_NAME

        design = DesignUpload(
            category=category,
            image=image,
            custom_category_name=custom_name,
            is_required=category in REQUIRED_CATEGORIES,
        )
        self._designs.append(design)
        logger.info(f"Added {category} design #{len(self._designs)}")
        return design

    def remove(self, index: int) -> DesignUpload:
        """
        Raises:
            IndexError: If index is out of range
        """
        if not (0 <= index < len(self._designs)):
            raise IndexError(f"No design at index {index}")
        return self._designs.pop(index)

    def count_by_category(self) -> Dict[str, int]:
        counts = {category: 0 for category in DESIGN_CATEGORIES}
        for design in self._designs:
            counts[design.category] += 1
        return counts

    def can_preview(self) -> bool:
        """True once every required category has at least one design."""
        counts = self.count_by_category()
        return all(counts[category] > 0 for category in REQUIRED_CATEGORIES)

    def require_preview(self) -> None:
        """
        Raises:
            PipelineStateError: If a required category is missing
        """
        if not self.can_preview():
            raise PipelineStateError(
                "Required designs missing",
                user_message="Please upload at least one Men's design and one Women's design",
            )

    def clear(self) -> None:
        self._designs.clear()
