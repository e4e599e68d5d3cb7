"""
Museum kiosk entry point.

Starts the PyQt5 kiosk window, or with ``--process`` runs one image through
crop and enhancement without a display.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from MK_Libs.CaptureLib.file_source import GalleryFile
from MK_Libs.constants import CATEGORY_MEN, CONFIG_FILE_NAME, DESIGN_CATEGORIES
from MK_Libs.kiosk_config import KioskConfig, load_config
from MK_Libs.PipelineLib.upload_pipeline import UploadPipeline

logger = logging.getLogger("museum_kiosk")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Museum design capture kiosk")
    parser.add_argument(
        "--config",
        type=Path,
        default=Path(CONFIG_FILE_NAME),
        help=f"JSON configuration file (default: {CONFIG_FILE_NAME})",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    parser.add_argument("--process", type=Path, help="Process one image without the kiosk window")
    parser.add_argument("--output", type=Path, help="Where to write the processed JPEG")
    parser.add_argument(
        "--enhance",
        nargs="*",
        default=[],
        metavar="FILTER",
        help="Enhancement filter ids to apply (e.g. background contrast sharpen auto)",
    )
    parser.add_argument(
        "--category",
        default=CATEGORY_MEN,
        choices=list(DESIGN_CATEGORIES),
        help="Design category for --process",
    )
    return parser


def process_image(
    image_path: Path,
    output_path: Path,
    enhancements: List[str],
    config: KioskConfig,
    category: str = CATEGORY_MEN,
) -> bool:
    """
    Run one image file through capture, centered crop and enhancement.

    Returns:
        True if the final JPEG was written
    """
    pipeline = UploadPipeline(config)

    try:
        gallery_file = GalleryFile.from_path(image_path)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot read {image_path}: {e}")
        return False

    unknown = [filter_id for filter_id in enhancements if not pipeline.catalog.has_filter(filter_id)]
    if unknown:
        logger.error(
            f"Unknown enhancement(s): {', '.join(unknown)}. "
            f"Available: {', '.join(pipeline.catalog.list_filter_ids())}"
        )
        return False

    steps = [
        lambda: pipeline.start_capture(category),
        lambda: pipeline.capture_from_file(gallery_file),
        pipeline.confirm_crop,
    ]
    steps.extend(lambda f=filter_id: pipeline.toggle_enhancement(f) for filter_id in enhancements)
    steps.append(pipeline.complete_enhancement)

    for step in steps:
        if step() is None:
            logger.error(f"Processing stopped: {pipeline.last_error}")
            pipeline.cancel()
            return False

    final = pipeline.final
    output_path.write_bytes(final.data)
    logger.info(f"Wrote {final.width}x{final.height} design to {output_path}")
    return True


def run_kiosk(config: KioskConfig) -> int:
    from PyQt5.QtWidgets import QApplication

    from MK_Libs.KioskUI.kiosk_window import MuseumKioskWindow

    app = QApplication(sys.argv)
    window = MuseumKioskWindow(config)
    window.show()
    return app.exec_()


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        logger.error(f"Invalid configuration {args.config}: {e}")
        return 2

    if args.process is not None:
        if args.output is None:
            parser.error("--output is required with --process")
        ok = process_image(args.process, args.output, args.enhance, config, args.category)
        return 0 if ok else 1

    return run_kiosk(config)


if __name__ == "__main__":
    sys.exit(main())
