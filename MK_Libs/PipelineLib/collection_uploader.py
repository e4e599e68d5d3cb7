"""
Collection uploader.

Submits a visitor's designs to the kiosk REST endpoint, one multipart POST
per design, all sharing a generated collection id. The endpoint answers with
``{"success": true, "data": ...}`` or ``{"success": false, "error": "..."}``.
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import requests

from MK_Libs.constants import JPEG_MIME_TYPE, UPLOAD_FILENAME_TEMPLATE
from MK_Libs.errors import UploadError
from MK_Libs.kiosk_config import KioskConfig
from MK_Libs.PipelineLib.design_accumulator import CreatorDetails, DesignUpload

logger = logging.getLogger(__name__)

FormFields = Dict[str, str]
FormFiles = Dict[str, Tuple[str, bytes, str]]


@dataclass
class UploadResult:
    collection_id: str
    responses: List[Dict[str, Any]] = field(default_factory=list)


def build_form(
    design: DesignUpload,
    index: int,
    collection_id: str,
    creator: CreatorDetails,
) -> Tuple[FormFields, FormFiles]:
    """
    Multipart fields for one design.

    Returns:
        (data, files) suitable for ``requests.post(data=..., files=...)``
    """
    data: FormFields = {
        "collection_id": collection_id,
        "creator_name": creator.name.strip(),
        "category": design.category,
    }
    if creator.email:
        data["creator_email"] = creator.email.strip()
    if creator.phone:
        data["creator_phone"] = creator.phone.strip()
    if creator.collection_name.strip():
        data["collection_name"] = creator.collection_name.strip()
    if creator.location.strip():
        data["location"] = creator.location.strip()
    if design.custom_category_name:
        data["custom_category_name"] = design.custom_category_name

    filename = UPLOAD_FILENAME_TEMPLATE.format(index=index)
    files: FormFiles = {
        "image": (filename, design.image.data, design.image.mime_type or JPEG_MIME_TYPE),
    }
    return data, files


class CollectionUploader:
    """Posts designs to the collection endpoint."""

    def __init__(
        self,
        config: Optional[KioskConfig] = None,
        post: Optional[Callable[..., Any]] = None,
    ):
        self.config = config or KioskConfig()
        self._post = post or requests.post

    def upload(
        self,
        creator: CreatorDetails,
        designs: Sequence[DesignUpload],
        collection_id: Optional[str] = None,
    ) -> UploadResult:
        """
        Upload every design of a collection.

        Args:
            creator: Visitor details (validated before sending)
            designs: Designs in display order
            collection_id: Id to use; a uuid4 is generated when None

        Returns:
            UploadResult with one parsed response per design

        Raises:
            UploadValidationError: If creator details are invalid
            UploadError: If there is nothing to upload, the request fails,
                or the server answers with success = false
        """
        creator.validate()
        if not designs:
            raise UploadError("No designs to upload", user_message="Please add a design first")

        result = UploadResult(collection_id=collection_id or str(uuid.uuid4()))
        for index, design in enumerate(designs):
            data, files = build_form(design, index, result.collection_id, creator)
            result.responses.append(self._send(data, files))

        logger.info(f"Uploaded {len(designs)} design(s) to collection {result.collection_id}")
        return result

    def _send(self, data: FormFields, files: FormFiles) -> Dict[str, Any]:
        try:
            response = self._post(
                self.config.upload_url,
                data=data,
                files=files,
                timeout=self.config.upload_timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Upload request failed: {e}")
            raise UploadError(f"Upload request failed: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise UploadError(
                f"Invalid response from server (HTTP {response.status_code})"
            ) from e

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("error") if isinstance(body, dict) else None
            message = message or "Upload failed"
            logger.error(f"Upload rejected (HTTP {response.status_code}): {message}")
            raise UploadError(message, user_message=message)

        return body
