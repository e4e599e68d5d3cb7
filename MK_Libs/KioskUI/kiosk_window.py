"""
Museum kiosk window.

A single full-screen window with four pages driven by an UploadPipeline:
the designs page (category buttons, collected designs, visitor details and
upload), the camera page, the crop page and the enhancement page.
"""

import logging
from typing import List, Optional

from PyQt5.QtCore import QPointF, QRectF, Qt, QTimer
from PyQt5.QtGui import QColor, QImage, QPainter, QPen, QPixmap
from PyQt5.QtWidgets import (
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QListWidget,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from MK_Libs.CaptureLib.camera_source import CameraSource
from MK_Libs.CaptureLib.file_source import GalleryFile, get_file_dialog_filter
from MK_Libs.constants import CATEGORY_MEN, CATEGORY_OTHERS, CATEGORY_WOMEN
from MK_Libs.CropLib.crop_region import ANCHOR_TOP_LEFT
from MK_Libs.CropLib.cropper import Cropper
from MK_Libs.errors import KioskError
from MK_Libs.ImageBufferLib.image_models import EncodedImage
from MK_Libs.kiosk_config import KioskConfig
from MK_Libs.PipelineLib.collection_uploader import CollectionUploader
from MK_Libs.PipelineLib.design_accumulator import CreatorDetails
from MK_Libs.PipelineLib.upload_pipeline import PipelineState, UploadPipeline

logger = logging.getLogger(__name__)

PREVIEW_INTERVAL_MS = 50
CANVAS_MAX_SIDE = 720
HANDLE_SIZE = 24

CATEGORY_LABELS = {
    CATEGORY_MEN: "Men's Design",
    CATEGORY_WOMEN: "Women's Design",
    CATEGORY_OTHERS: "Other Design",
}


def encoded_to_pixmap(image: EncodedImage) -> QPixmap:
    pixmap = QPixmap()
    if not pixmap.loadFromData(image.data, "JPEG"):
        logger.warning(f"Could not load {image.width}x{image.height} preview")
    return pixmap


class CropCanvas(QWidget):
    """
    Shows the capture at its display size and lets the visitor move,
    resize or redraw the square region with the mouse.
    """

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.cropper: Optional[Cropper] = None
        self._pixmap = QPixmap()
        self._view_scale = 1.0
        self._mode: Optional[str] = None
        self._press_point: Optional[QPointF] = None
        self._last_point: Optional[QPointF] = None
        self.setMouseTracking(False)

    def set_cropper(self, cropper: Optional[Cropper]) -> None:
        self.cropper = cropper
        if cropper is None:
            self._pixmap = QPixmap()
            self.update()
            return

        display_w, display_h = cropper.display_size
        self._view_scale = min(1.0, CANVAS_MAX_SIDE / max(display_w, display_h))
        self._pixmap = encoded_to_pixmap(cropper.raw)
        self.setFixedSize(int(display_w * self._view_scale), int(display_h * self._view_scale))
        self.update()

    def _to_display(self, point: QPointF) -> QPointF:
        return QPointF(point.x() / self._view_scale, point.y() / self._view_scale)

    def _region_rect(self) -> Optional[QRectF]:
        if self.cropper is None or self.cropper.region is None:
            return None
        region = self.cropper.region
        s = self._view_scale
        return QRectF(region.x * s, region.y * s, region.size * s, region.size * s)

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        if not self._pixmap.isNull():
            painter.drawPixmap(self.rect(), self._pixmap)

        rect = self._region_rect()
        if rect is not None:
            painter.fillRect(QRectF(self.rect()), QColor(0, 0, 0, 90))
            painter.drawPixmap(rect, self._pixmap, self._source_rect(rect))
            painter.setPen(QPen(QColor(255, 255, 255), 2))
            painter.drawRect(rect)
            handle = QRectF(
                rect.right() - HANDLE_SIZE / 2,
                rect.bottom() - HANDLE_SIZE / 2,
                HANDLE_SIZE,
                HANDLE_SIZE,
            )
            painter.fillRect(handle, QColor(255, 255, 255))
        painter.end()

    def _source_rect(self, rect: QRectF) -> QRectF:
        sx = self._pixmap.width() / max(self.width(), 1)
        sy = self._pixmap.height() / max(self.height(), 1)
        return QRectF(rect.x() * sx, rect.y() * sy, rect.width() * sx, rect.height() * sy)

    def mousePressEvent(self, event) -> None:
        if self.cropper is None or event.button() != Qt.LeftButton:
            super().mousePressEvent(event)
            return

        point = QPointF(event.pos())
        rect = self._region_rect()
        if rect is not None and abs(point.x() - rect.right()) <= HANDLE_SIZE and abs(point.y() - rect.bottom()) <= HANDLE_SIZE:
            self._mode = "resize"
        elif rect is not None and rect.contains(point):
            self._mode = "move"
        else:
            self._mode = "draw"

        self._press_point = point
        self._last_point = point
        event.accept()

    def mouseMoveEvent(self, event) -> None:
        if self.cropper is None or self._mode is None:
            super().mouseMoveEvent(event)
            return

        point = QPointF(event.pos())
        current = self._to_display(point)

        if self._mode == "move":
            previous = self._to_display(self._last_point)
            self.cropper.move(current.x() - previous.x(), current.y() - previous.y())
        elif self._mode == "resize":
            region = self.cropper.region
            new_size = max(current.x() - region.x, current.y() - region.y)
            self.cropper.resize(new_size, anchor=ANCHOR_TOP_LEFT)
        else:
            start = self._to_display(self._press_point)
            self.cropper.drag(start.x(), start.y(), current.x(), current.y())

        self._last_point = point
        self.update()
        event.accept()

    def mouseReleaseEvent(self, event) -> None:
        self._mode = None
        self._press_point = None
        self._last_point = None
        super().mouseReleaseEvent(event)


class MuseumKioskWindow(QMainWindow):
    def __init__(
        self,
        config: Optional[KioskConfig] = None,
        pipeline: Optional[UploadPipeline] = None,
        uploader: Optional[CollectionUploader] = None,
    ) -> None:
        super().__init__()
        self.config = config or KioskConfig()
        self.pipeline = pipeline or UploadPipeline(self.config, name_provider=self.ask_custom_name)
        self.uploader = uploader or CollectionUploader(self.config)

        self.setWindowTitle("Museum Design Kiosk")
        self.resize(1280, 900)

        self.preview_timer = QTimer(self)
        self.preview_timer.setInterval(PREVIEW_INTERVAL_MS)
        self.filter_buttons: List[QPushButton] = []

        self._build_ui()
        self._connect_signals()
        self.refresh_designs()

    # ------------------------------------------------------------------
    # Layout
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        self.pages = QStackedWidget(self)
        self.setCentralWidget(self.pages)

        self.designs_page = self._build_designs_page()
        self.capture_page = self._build_capture_page()
        self.crop_page = self._build_crop_page()
        self.enhance_page = self._build_enhance_page()

        for page in (self.designs_page, self.capture_page, self.crop_page, self.enhance_page):
            self.pages.addWidget(page)

    def _build_designs_page(self) -> QWidget:
        page = QWidget()
        root = QVBoxLayout(page)

        categories_row = QHBoxLayout()
        self.category_buttons = {}
        for category, label in CATEGORY_LABELS.items():
            column = QVBoxLayout()
            column.addWidget(QLabel(label))
            camera_button = QPushButton("Take Photo")
            gallery_button = QPushButton("Choose from Gallery")
            column.addWidget(camera_button)
            column.addWidget(gallery_button)
            categories_row.addLayout(column)
            self.category_buttons[category] = (camera_button, gallery_button)

        self.designs_list = QListWidget()
        self.btn_remove_design = QPushButton("Remove Selected")

        self.input_name = QLineEdit()
        self.input_email = QLineEdit()
        self.input_phone = QLineEdit()
        self.input_collection_name = QLineEdit()
        self.input_location = QLineEdit()
        details = QFormLayout()
        details.addRow("Name", self.input_name)
        details.addRow("Email", self.input_email)
        details.addRow("Phone", self.input_phone)
        details.addRow("Collection Name", self.input_collection_name)
        details.addRow("Location", self.input_location)

        self.label_requirements = QLabel()
        self.btn_upload = QPushButton("Upload Collection")

        root.addLayout(categories_row)
        root.addWidget(QLabel("Your Designs"))
        root.addWidget(self.designs_list)
        root.addWidget(self.btn_remove_design)
        root.addLayout(details)
        root.addWidget(self.label_requirements)
        root.addWidget(self.btn_upload)
        return page

    def _build_capture_page(self) -> QWidget:
        page = QWidget()
        root = QVBoxLayout(page)

        self.label_camera_preview = QLabel("Starting camera...")
        self.label_camera_preview.setAlignment(Qt.AlignCenter)
        self.label_camera_preview.setMinimumSize(640, 480)
        self.label_camera_preview.setStyleSheet("background: #000; color: #fff;")

        buttons = QHBoxLayout()
        self.btn_capture_back = QPushButton("Back")
        self.btn_switch_camera = QPushButton("Switch Camera")
        self.btn_retry_camera = QPushButton("Try Again")
        self.btn_capture = QPushButton("Capture")
        for button in (self.btn_capture_back, self.btn_switch_camera, self.btn_retry_camera, self.btn_capture):
            buttons.addWidget(button)

        root.addWidget(self.label_camera_preview, stretch=1)
        root.addLayout(buttons)
        return page

    def _build_crop_page(self) -> QWidget:
        page = QWidget()
        root = QVBoxLayout(page)

        self.crop_canvas = CropCanvas()
        self.label_crop_hint = QLabel("Drag to move, use the corner to resize")

        buttons = QHBoxLayout()
        self.btn_crop_back = QPushButton("Back")
        self.btn_crop_reset = QPushButton("Reset")
        self.btn_crop_confirm = QPushButton("Crop")
        for button in (self.btn_crop_back, self.btn_crop_reset, self.btn_crop_confirm):
            buttons.addWidget(button)

        root.addWidget(self.crop_canvas, alignment=Qt.AlignCenter)
        root.addWidget(self.label_crop_hint)
        root.addLayout(buttons)
        return page

    def _build_enhance_page(self) -> QWidget:
        page = QWidget()
        root = QVBoxLayout(page)
        middle = QHBoxLayout()

        left_col = QVBoxLayout()
        right_col = QVBoxLayout()
        for position, column in (("left", left_col), ("right", right_col)):
            for enhancement in self.pipeline.catalog.filters_by_position(position):
                button = QPushButton(enhancement.name)
                button.setCheckable(True)
                button.setToolTip(enhancement.description)
                button.setProperty("filter_id", enhancement.filter_id)
                column.addWidget(button)
                self.filter_buttons.append(button)
            column.addStretch(1)

        self.label_enhance_preview = QLabel("Preview")
        self.label_enhance_preview.setAlignment(Qt.AlignCenter)
        self.label_enhance_preview.setMinimumSize(540, 540)
        self.label_enhance_preview.setStyleSheet("border: 1px solid #888;")

        middle.addLayout(left_col)
        middle.addWidget(self.label_enhance_preview, stretch=1)
        middle.addLayout(right_col)

        buttons = QHBoxLayout()
        self.btn_enhance_back = QPushButton("Back")
        self.btn_enhance_complete = QPushButton("Complete")
        buttons.addWidget(self.btn_enhance_back)
        buttons.addWidget(self.btn_enhance_complete)

        root.addLayout(middle, stretch=1)
        root.addLayout(buttons)
        return page

    def _connect_signals(self) -> None:
        for category, (camera_button, gallery_button) in self.category_buttons.items():
            camera_button.clicked.connect(lambda _=False, c=category: self.start_camera(c))
            gallery_button.clicked.connect(lambda _=False, c=category: self.start_gallery(c))

        self.btn_remove_design.clicked.connect(self.remove_selected_design)
        self.btn_upload.clicked.connect(self.upload_collection)

        self.preview_timer.timeout.connect(self.update_camera_preview)
        self.btn_capture_back.clicked.connect(self.go_back)
        self.btn_switch_camera.clicked.connect(self.switch_camera)
        self.btn_retry_camera.clicked.connect(self.retry_camera)
        self.btn_capture.clicked.connect(self.capture_photo)

        self.btn_crop_back.clicked.connect(self.go_back)
        self.btn_crop_reset.clicked.connect(self.reset_crop)
        self.btn_crop_confirm.clicked.connect(self.confirm_crop)

        for button in self.filter_buttons:
            button.clicked.connect(lambda _=False, b=button: self.toggle_filter(b))
        self.btn_enhance_back.clicked.connect(self.go_back)
        self.btn_enhance_complete.clicked.connect(self.complete_design)

    # ------------------------------------------------------------------
    # Capture
    # ------------------------------------------------------------------

    def start_camera(self, category: str) -> None:
        camera = CameraSource(self.config)
        self.pipeline.start_capture(category, camera=camera)
        self.sync_page()

    def start_gallery(self, category: str) -> None:
        if self.pipeline.start_capture(category) is None:
            self.sync_page()
            return

        file_path, _ = QFileDialog.getOpenFileName(
            self,
            "Choose Design",
            "",
            get_file_dialog_filter(self.config.allow_extended_mime_types),
        )
        if not file_path:
            self.pipeline.back()
            self.sync_page()
            return

        try:
            gallery_file = GalleryFile.from_path(file_path)
        except (OSError, ValueError) as e:
            logger.error(f"Could not read {file_path}: {e}")
            self.pipeline.back()
            self._show_error("This image could not be opened. Please try another one.")
            self.sync_page()
            return

        if self.pipeline.capture_from_file(gallery_file) is None:
            message = self.pipeline.last_error
            self.pipeline.back()
            if message:
                self._show_error(message)
        self.sync_page()

    def update_camera_preview(self) -> None:
        camera = self.pipeline.camera
        if camera is None or not camera.is_ready:
            return

        try:
            frame = camera.read_frame()
        except KioskError as e:
            logger.warning(f"Preview stopped: {e}")
            self.preview_timer.stop()
            self.label_camera_preview.setText(e.user_message)
            return

        height, width = frame.shape[:2]
        qimage = QImage(frame.data, width, height, frame.strides[0], QImage.Format_BGR888)
        pixmap = QPixmap.fromImage(qimage.copy())
        self.label_camera_preview.setPixmap(
            pixmap.scaled(
                self.label_camera_preview.size(),
                Qt.AspectRatioMode.KeepAspectRatio,
                Qt.TransformationMode.SmoothTransformation,
            )
        )

    def capture_photo(self) -> None:
        self.pipeline.capture_from_camera()
        self.sync_page()

    def switch_camera(self) -> None:
        self.pipeline.switch_camera()
        self.sync_page()

    def retry_camera(self) -> None:
        self.pipeline.retry_camera()
        self.sync_page()

    # ------------------------------------------------------------------
    # Crop and enhance
    # ------------------------------------------------------------------

    def reset_crop(self) -> None:
        if self.pipeline.cropper is not None:
            self.pipeline.cropper.on_image_loaded()
            self.crop_canvas.update()

    def confirm_crop(self) -> None:
        self.pipeline.confirm_crop()
        self.sync_page()

    def toggle_filter(self, button: QPushButton) -> None:
        self.pipeline.toggle_enhancement(button.property("filter_id"))
        self.sync_page()

    def complete_design(self) -> None:
        design = self.pipeline.complete_enhancement()
        if design is not None:
            self.pipeline.back()
            self.refresh_designs()
        self.sync_page()

    def ask_custom_name(self) -> Optional[str]:
        text, ok = QInputDialog.getText(self, "Design Category", "What kind of design is this?")
        return text if ok else None

    def go_back(self) -> None:
        self.pipeline.back()
        self.sync_page()

    # ------------------------------------------------------------------
    # Designs and upload
    # ------------------------------------------------------------------

    def refresh_designs(self) -> None:
        self.designs_list.clear()
        for index, design in enumerate(self.pipeline.accumulator.designs, start=1):
            label = design.custom_category_name or CATEGORY_LABELS[design.category]
            self.designs_list.addItem(f"{index}. {label} ({design.image.width}x{design.image.height})")

        counts = self.pipeline.accumulator.count_by_category()
        self.label_requirements.setText(
            f"Men: {counts[CATEGORY_MEN]}  Women: {counts[CATEGORY_WOMEN]}  Others: {counts[CATEGORY_OTHERS]}"
        )
        self.btn_upload.setEnabled(self.pipeline.accumulator.can_preview())

    def remove_selected_design(self) -> None:
        row = self.designs_list.currentRow()
        if row < 0:
            return
        self.pipeline.accumulator.remove(row)
        self.refresh_designs()

    def upload_collection(self) -> None:
        creator = CreatorDetails(
            name=self.input_name.text(),
            email=self.input_email.text(),
            phone=self.input_phone.text(),
            collection_name=self.input_collection_name.text(),
            location=self.input_location.text(),
        )
        try:
            self.pipeline.accumulator.require_preview()
            result = self.uploader.upload(creator, self.pipeline.accumulator.designs)
        except KioskError as e:
            logger.error(f"Collection upload failed: {e}")
            self._show_error(e.user_message)
            return

        self.pipeline.accumulator.clear()
        self.refresh_designs()
        QMessageBox.information(
            self,
            "Thank You",
            f"Uploaded {len(result.responses)} design(s). Collection {result.collection_id}",
        )

    # ------------------------------------------------------------------
    # Page sync
    # ------------------------------------------------------------------

    def sync_page(self) -> None:
        state = self.pipeline.state

        if state == PipelineState.CAPTURING:
            self.pages.setCurrentWidget(self.capture_page)
            has_camera = self.pipeline.camera is not None
            ready = has_camera and self.pipeline.camera.is_ready
            self.btn_capture.setEnabled(ready)
            self.btn_switch_camera.setEnabled(ready)
            self.btn_retry_camera.setVisible(has_camera and not ready)
            if ready:
                self.preview_timer.start()
            else:
                self.preview_timer.stop()
                self.label_camera_preview.setText("Camera unavailable" if has_camera else "")
        else:
            self.preview_timer.stop()

        if state == PipelineState.CROPPING:
            if self.crop_canvas.cropper is not self.pipeline.cropper:
                self.crop_canvas.set_cropper(self.pipeline.cropper)
            self.pages.setCurrentWidget(self.crop_page)
        else:
            self.crop_canvas.set_cropper(None)

        if state == PipelineState.ENHANCING:
            enhancer = self.pipeline.enhancer
            for button in self.filter_buttons:
                button.setChecked(enhancer.is_active(button.property("filter_id")))
            pixmap = encoded_to_pixmap(enhancer.preview)
            self.label_enhance_preview.setPixmap(
                pixmap.scaled(
                    self.label_enhance_preview.size(),
                    Qt.AspectRatioMode.KeepAspectRatio,
                    Qt.TransformationMode.SmoothTransformation,
                )
            )
            self.pages.setCurrentWidget(self.enhance_page)

        if state in (PipelineState.IDLE, PipelineState.DONE):
            self.pages.setCurrentWidget(self.designs_page)

        if self.pipeline.last_error:
            self._show_error(self.pipeline.last_error)

    def _show_error(self, message: str) -> None:
        QMessageBox.warning(self, "Something went wrong", message)

    def closeEvent(self, event) -> None:
        self.preview_timer.stop()
        self.pipeline.cancel()
        super().closeEvent(event)
