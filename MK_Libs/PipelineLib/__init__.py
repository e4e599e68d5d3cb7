"""
PipelineLib - Stage sequencing, design collection and upload

This module provides the capture -> crop -> enhance state machine, the
accumulator that collects finished designs, and the collection uploader.
"""

from MK_Libs.PipelineLib.design_accumulator import (
    CreatorDetails,
    DesignAccumulator,
    DesignUpload,
)
from MK_Libs.PipelineLib.collection_uploader import (
    CollectionUploader,
    UploadResult,
    build_form,
)
from MK_Libs.PipelineLib.upload_pipeline import PipelineState, UploadPipeline

__all__ = [
    "CreatorDetails",
    "DesignAccumulator",
    "DesignUpload",
    "CollectionUploader",
    "UploadResult",
    "build_form",
    "PipelineState",
    "UploadPipeline",
]
