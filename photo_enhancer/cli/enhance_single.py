import os
import sys
import logging
import argparse
from dotenv import load_dotenv

# Load environment variables first
load_dotenv()

from ..models.enhancement_settings import EnhancementSettings
from ..services.photo_editor_session import PhotoEditorSession
from ..services.sharpening_service import SharpeningService, BORDER_MODES

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    defaults = EnhancementSettings()
    ap = argparse.ArgumentParser(
        prog="photo-enhance",
        description="Brighten, add contrast and sharpen a single photo.",
    )
    ap.add_argument("input", help="path of the photo to enhance")
    ap.add_argument("-o", "--output", default=os.getenv("EXPORT_FILENAME", "enhanced-photo.png"),
                    help="PNG file to write (default: %(default)s)")
    ap.add_argument("--brightness", type=int, default=defaults.brightness, help="percent, 80-140")
    ap.add_argument("--contrast", type=int, default=defaults.contrast, help="percent, 80-160")
    ap.add_argument("--sharpness", type=int, default=defaults.sharpness, help="percent, 100-200")
    ap.add_argument("--border-mode", choices=BORDER_MODES, default=None,
                    help="how the unsharpened one-pixel border is filled")
    ap.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return ap


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    # --- Centralized Logging Configuration ---
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else os.getenv("LOG_LEVEL", "INFO").upper(),
        format='%(asctime)s - %(name)-25s - %(levelname)-8s - %(message)s',
        datefmt='%H:%M:%S'
    )

    settings = EnhancementSettings(
        brightness=args.brightness,
        contrast=args.contrast,
        sharpness=args.sharpness,
    )
    session = PhotoEditorSession(
        "cli",
        settings=settings,
        min_processing_duration=0.0,
        sharpening_service=SharpeningService(args.border_mode),
    )

    try:
        loaded = session.load_file(args.input)
    except FileNotFoundError as e:
        logger.error(str(e))
        return 1
    if not loaded:
        logger.error(f"Not a supported image: {args.input}")
        return 1

    session.enhance()
    session.wait()
    out_path = session.save_result(args.output)

    logger.info(f"Settings used: {settings.as_dict()}")
    logger.info(f"Enhanced photo written to {out_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
