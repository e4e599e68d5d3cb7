"""
Upload pipeline state machine.

Drives one design through capture, crop and enhancement:

    IDLE -> CAPTURING -> CROPPING -> ENHANCING -> DONE

Each transition takes the previous stage's buffer as explicit input. Stage
errors are caught at the stage boundary: they are logged, their user message
is stored in ``last_error``, the state is left unchanged, and the method
returns None so the visitor can retry or go back.

Classes:
    PipelineState: Pipeline states
    UploadPipeline: State machine for one design at a time
"""

import logging
from enum import Enum
from typing import Callable, Optional, TypeVar

from MK_Libs.CaptureLib.camera_source import CameraSource
from MK_Libs.CaptureLib.file_source import GalleryFile, load_gallery_file
from MK_Libs.constants import DESIGN_CATEGORIES
from MK_Libs.CropLib.cropper import Cropper
from MK_Libs.EnhanceLib.enhancer import Enhancer
from MK_Libs.EnhanceLib.filter_catalog import FilterCatalog, build_default_catalog
from MK_Libs.errors import KioskError, PipelineStateError
from MK_Libs.ImageBufferLib.image_models import (
    CroppedImage,
    EncodedImage,
    FinalImage,
    RawCapture,
)
from MK_Libs.kiosk_config import KioskConfig
from MK_Libs.PipelineLib.design_accumulator import (
    DesignAccumulator,
    DesignUpload,
    NameProvider,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PipelineState(Enum):
    IDLE = "idle"
    CAPTURING = "capturing"
    CROPPING = "cropping"
    ENHANCING = "enhancing"
    DONE = "done"


class UploadPipeline:
    """
    Capture, crop and enhance one design at a time.

    Example:
        >>> pipeline = UploadPipeline(config)
        >>> pipeline.start_capture("men")
        >>> pipeline.capture_from_file(GalleryFile.from_path(path))
        >>> pipeline.confirm_crop()
        >>> pipeline.toggle_enhancement("contrast")
        >>> design = pipeline.complete_enhancement()
    """

    def __init__(
        self,
        config: Optional[KioskConfig] = None,
        catalog: Optional[FilterCatalog] = None,
        accumulator: Optional[DesignAccumulator] = None,
        name_provider: Optional[NameProvider] = None,
    ):
        self.config = config or KioskConfig()
        self.catalog = catalog or build_default_catalog(
            background_threshold=self.config.background_threshold,
            contrast_amount=self.config.contrast_amount,
            sharpen_amount=self.config.sharpen_amount,
        )
        self.accumulator = accumulator if accumulator is not None else DesignAccumulator()
        self.name_provider = name_provider

        self.state = PipelineState.IDLE
        self.category: Optional[str] = None
        self.camera: Optional[CameraSource] = None
        self.raw: Optional[RawCapture] = None
        self.cropper: Optional[Cropper] = None
        self.cropped: Optional[CroppedImage] = None
        self.enhancer: Optional[Enhancer] = None
        self.final: Optional[FinalImage] = None
        self.last_error: Optional[str] = None

    # ------------------------------------------------------------------
    # Stage boundary
    # ------------------------------------------------------------------

    def _run_stage(self, action: str, func: Callable[[], T]) -> Optional[T]:
        self.last_error = None
        try:
            return func()
        except KioskError as e:
            logger.error(f"{action} failed in state {self.state.value}: {e}")
            self.last_error = e.user_message
            return None

    def _require_state(self, *states: PipelineState) -> None:
        if self.state not in states:
            expected = ", ".join(state.value for state in states)
            raise PipelineStateError(
                f"Expected state {expected}, pipeline is {self.state.value}"
            )

    def _set_state(self, state: PipelineState) -> None:
        logger.debug(f"Pipeline {self.state.value} -> {state.value}")
        self.state = state

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def start_capture(self, category: str, camera: Optional[CameraSource] = None) -> Optional[PipelineState]:
        """
        Begin a new design in ``category``.

        When a camera is given it is opened here; a camera failure keeps
        the pipeline in CAPTURING so the visitor can retry, switch cameras
        or pick a gallery file.
        """
        def run() -> PipelineState:
            self._require_state(PipelineState.IDLE, PipelineState.DONE)
            if category not in DESIGN_CATEGORIES:
                raise PipelineStateError(
                    f"Unknown design category: {category!r}",
                    user_message="Please choose a design category first",
                )
            self.final = None
            self.category = category
            self._set_state(PipelineState.CAPTURING)
            if camera is not None:
                self.camera = camera
                self._open_camera()
            return self.state

        return self._run_stage("Start capture", run)

    def _open_camera(self) -> None:
        self.camera.open()
        try:
            self.camera.wait_until_ready()
        except KioskError:
            self.camera.release()
            raise

    def retry_camera(self) -> Optional[PipelineState]:
        """Reopen the attached camera after a device error."""
        def run() -> PipelineState:
            self._require_state(PipelineState.CAPTURING)
            if self.camera is None:
                raise PipelineStateError("No camera attached")
            self._open_camera()
            return self.state

        return self._run_stage("Retry camera", run)

    def switch_camera(self, facing_mode: Optional[str] = None) -> Optional[str]:
        """Switch between front and back camera without leaving CAPTURING."""
        def run() -> str:
            self._require_state(PipelineState.CAPTURING)
            if self.camera is None:
                raise PipelineStateError("No camera attached")
            return self.camera.switch_facing(facing_mode)

        return self._run_stage("Switch camera", run)

    def capture_from_camera(self) -> Optional[RawCapture]:
        """Take a still from the attached camera and move to CROPPING."""
        def run() -> RawCapture:
            self._require_state(PipelineState.CAPTURING)
            if self.camera is None:
                raise PipelineStateError("No camera attached")
            raw = self.camera.capture()
            self._accept_capture(raw)
            return raw

        return self._run_stage("Camera capture", run)

    def capture_from_file(self, gallery_file: GalleryFile) -> Optional[RawCapture]:
        """Validate a gallery file, treat it as a capture and move to CROPPING."""
        def run() -> RawCapture:
            self._require_state(PipelineState.CAPTURING)
            raw = load_gallery_file(gallery_file, self.config)
            self._accept_capture(raw)
            return raw

        return self._run_stage("Gallery capture", run)

    def accept_capture(self, raw: RawCapture) -> Optional[RawCapture]:
        """Hand an externally produced RawCapture to the cropper."""
        def run() -> RawCapture:
            self._require_state(PipelineState.CAPTURING)
            self._accept_capture(raw)
            return raw

        return self._run_stage("Accept capture", run)

    def _accept_capture(self, raw: RawCapture) -> None:
        cropper = self._make_cropper(raw)
        self._release_camera()
        self.raw = raw
        self.cropper = cropper
        self._set_state(PipelineState.CROPPING)

    def _make_cropper(self, raw: RawCapture) -> Cropper:
        return Cropper(
            raw,
            display_max_size=(self.config.display_max_width, self.config.display_max_height),
            quality=self.config.output_quality,
        )

    # ------------------------------------------------------------------
    # Crop
    # ------------------------------------------------------------------

    def confirm_crop(self) -> Optional[CroppedImage]:
        """Emit the CroppedImage and move to ENHANCING."""
        def run() -> CroppedImage:
            self._require_state(PipelineState.CROPPING)
            cropped = self.cropper.confirm()
            enhancer = Enhancer(cropped, catalog=self.catalog, quality=self.config.output_quality)
            self.cropper.release()
            self.cropper = None
            self.cropped = cropped
            self.enhancer = enhancer
            self._set_state(PipelineState.ENHANCING)
            return cropped

        return self._run_stage("Crop", run)

    # ------------------------------------------------------------------
    # Enhance
    # ------------------------------------------------------------------

    def toggle_enhancement(self, filter_id: str) -> Optional[EncodedImage]:
        """Flip one filter; returns the new preview."""
        def run() -> EncodedImage:
            self._require_state(PipelineState.ENHANCING)
            return self.enhancer.toggle(filter_id)

        return self._run_stage("Enhancement", run)

    def complete_enhancement(self) -> Optional[DesignUpload]:
        """Emit the FinalImage to the accumulator and move to DONE."""
        def run() -> DesignUpload:
            self._require_state(PipelineState.ENHANCING)
            final = self.enhancer.complete()
            design = self.accumulator.add(final, self.category, self.name_provider)
            self.final = final
            self.camera = None
            self._clear_design()
            self._set_state(PipelineState.DONE)
            return design

        return self._run_stage("Complete enhancement", run)

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def back(self) -> PipelineState:
        """
        Leave the current stage, releasing what it holds.

        ENHANCING returns to CROPPING with a fresh region on the same
        capture; CROPPING returns to CAPTURING; CAPTURING returns to IDLE.
        """
        self.last_error = None

        if self.state == PipelineState.ENHANCING:
            self._release_enhancer()
            self.cropped = None
            try:
                self.cropper = self._make_cropper(self.raw)
            except KioskError as e:
                logger.error(f"Could not reopen crop: {e}")
                self.last_error = e.user_message
                self.raw = None
                self._set_state(PipelineState.CAPTURING)
                return self.state
            self._set_state(PipelineState.CROPPING)

        elif self.state == PipelineState.CROPPING:
            self._release_cropper()
            self.raw = None
            self._set_state(PipelineState.CAPTURING)
            if self.camera is not None:
                self._run_stage("Reopen camera", self._open_camera)

        elif self.state == PipelineState.CAPTURING:
            self._release_camera()
            self.camera = None
            self.category = None
            self._set_state(PipelineState.IDLE)

        elif self.state == PipelineState.DONE:
            self._set_state(PipelineState.IDLE)

        return self.state

    def cancel(self) -> None:
        """Discard the design in progress and release every held resource."""
        self._release_camera()
        self.camera = None
        self._clear_design()
        self.final = None
        self.last_error = None
        self._set_state(PipelineState.IDLE)

    def _clear_design(self) -> None:
        self._release_enhancer()
        self._release_cropper()
        self.raw = None
        self.cropped = None
        self.category = None

    def _release_camera(self) -> None:
        if self.camera is not None:
            self.camera.release()

    def _release_cropper(self) -> None:
        if self.cropper is not None:
            self.cropper.release()
            self.cropper = None

    def _release_enhancer(self) -> None:
        if self.enhancer is not None:
            self.enhancer.release()
            self.enhancer = None
