"""
facecrop command-line interface.

Responsibility:
    Parse command-line arguments, configure logging and the application,
    wire together input, detection and output, and run the batch.

Usage:
    facecrop photo.jpg group.png -o faces/
    facecrop photos/ --detector dlib --size 256 --adjust square
    facecrop photos/ --min-size 64 --max-size 400x400 --jobs 4 -v
    facecrop photos/ --config facecrop.yaml --manifest json
"""

import argparse
import logging
import sys
from typing import List, Optional

from facecrop import __version__
from facecrop.config import (
    VALID_ADJUST_POLICIES,
    VALID_MANIFESTS,
    VALID_MODES,
    apply_overrides,
    load_config,
    parse_size,
)
from facecrop.input_handler import InputHandler
from facecrop.output_handler import OutputHandler
from facecrop.pipeline import BatchProcessor

logger = logging.getLogger("facecrop")

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(threadName)s %(name)s: %(message)s"


def _size(text: str):
    try:
        return parse_size(text)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="facecrop",
        description="Detect faces in images and save cropped, resized thumbnails.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "inputs",
        nargs="+",
        metavar="INPUT",
        help="Image files or directories of images.",
    )
    parser.add_argument(
        "-o", "--output-dir",
        type=str,
        help="Directory for the face thumbnails. Overrides config (default: faces).",
    )
    parser.add_argument(
        "--detector",
        choices=VALID_MODES,
        help="Detector backend: OpenCV Haar cascade or dlib frontal-face detector.",
    )
    parser.add_argument(
        "--cascade",
        type=str,
        help="Haar cascade XML file. Overrides config.",
    )
    parser.add_argument(
        "--min-size",
        type=_size,
        help="Minimum face size, N or WxH pixels.",
    )
    parser.add_argument(
        "--max-size",
        type=_size,
        help="Maximum face size, N or WxH pixels.",
    )
    parser.add_argument(
        "--size",
        type=_size,
        help="Thumbnail size, N or WxH pixels (default: 512x512).",
    )
    parser.add_argument(
        "--min-neighbors",
        type=int,
        help="Haar cascade minimum neighbor count (default: 3).",
    )
    parser.add_argument(
        "--scale-factor",
        type=float,
        help="Haar cascade pyramid scale factor (default: 1.1).",
    )
    parser.add_argument(
        "--upsample",
        type=int,
        help="dlib upsampling passes (default: 1).",
    )
    parser.add_argument(
        "--adjust",
        choices=VALID_ADJUST_POLICIES,
        help="Bounding-box adjustment policy (default: none).",
    )
    parser.add_argument(
        "--padding",
        type=float,
        help="Margin per side as a fraction of the face size, "
             "used by 'expand' and 'square' (default: 0.25).",
    )
    parser.add_argument(
        "-j", "--jobs",
        type=int,
        help="Number of images processed concurrently (default: CPU count).",
    )
    parser.add_argument(
        "--manifest",
        choices=VALID_MANIFESTS,
        help="Write a manifest of all crops to the output directory.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML configuration file.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=None,
        help="Enable debug logging.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the tool. Returns the process exit code."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=_LOG_FORMAT,
        datefmt="%H:%M:%S",
    )

    # 1. Load Configuration (CLI args > ENV > YAML > Defaults)
    try:
        config = load_config(args.config)
        config = apply_overrides(
            config,
            detector_mode=args.detector,
            detector_cascade_path=args.cascade,
            detector_min_size=args.min_size,
            detector_max_size=args.max_size,
            detector_min_neighbors=args.min_neighbors,
            detector_scale_factor=args.scale_factor,
            detector_upsample=args.upsample,
            crop_adjust=args.adjust,
            crop_padding=args.padding,
            crop_size=args.size,
            output_directory=args.output_dir,
            output_manifest=args.manifest,
            run_jobs=args.jobs,
            run_verbose=args.verbose,
        )
    except Exception as e:
        logger.error("Configuration error: %s", e)
        return 1

    if config.run.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    # 2. Initialize Components
    try:
        inputs = InputHandler(args.inputs)
        output = OutputHandler(config.output)
        processor = BatchProcessor(config, output)
    except (FileNotFoundError, ValueError, RuntimeError, OSError) as e:
        logger.error("Initialization failed: %s", e)
        return 1
    except Exception as e:
        logger.exception("Unexpected initialization error: %s", e)
        return 1

    logger.info(
        "Processing %d image(s) with %s detector, %d job(s).",
        len(inputs), config.detector.mode, config.run.jobs,
    )

    # 3. Run the batch
    exit_code = 0
    try:
        processor.run(inputs)
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        exit_code = 130
    except Exception as e:
        logger.exception("Runtime error during processing: %s", e)
        exit_code = 1
    finally:
        # 4. Cleanup
        try:
            output.finalize()
        except OSError as e:
            logger.error("Failed to write manifest: %s", e)
            exit_code = 1

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
