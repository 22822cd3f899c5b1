"""
Object Detection CLI Entrypoint.

Responsibility:
    Parse command-line arguments, load configuration, wire together the
    detector and I/O handlers, and run the frame loop.

Usage:
    python main.py --source 0                      # Webcam
    python main.py --source video.mp4 --output-mode display,save_video
    python main.py --source images/ --output-mode save_json
    python main.py --config my_config.yaml

Exit codes:
    0 on a clean stop (end of stream, quit key, window closed, Ctrl-C).
    1 on a startup failure or an error during processing.
"""

import argparse
import logging
import sys
import time

# Configure logging before importing local modules
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("main")

from object_detection.config import apply_overrides, load_config
from object_detection.detector import Detector
from object_detection.input_handler import InputHandler
from object_detection.output_handler import OutputHandler
from object_detection.pipeline import run_pipeline


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Real-time YOLO object detection",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--source",
        type=str,
        help="Input source: '0' for webcam, path to image/video file, or directory.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML configuration file.",
    )
    parser.add_argument(
        "--confidence",
        type=float,
        help="Confidence threshold (0.0 - 1.0). Overrides config.",
    )
    parser.add_argument(
        "--nms",
        type=float,
        help="NMS IoU threshold (0.0 - 1.0). Overrides config.",
    )
    parser.add_argument(
        "--per-class-nms",
        action="store_true",
        help="Suppress overlapping boxes only within the same class.",
    )
    parser.add_argument(
        "--backend",
        type=str,
        choices=["cpu", "cuda"],
        help="Compute backend preference. Overrides config.",
    )
    parser.add_argument(
        "--output-mode",
        type=str,
        help="Comma-separated output modes: display, save_image, save_video, "
             "save_json, save_csv. Overrides config.",
    )
    parser.add_argument(
        "--output-path",
        type=str,
        help="Directory for output artifacts. Overrides config.",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """Main execution loop."""
    args = parse_args(argv)
    logging.getLogger().setLevel(args.log_level)

    # 1. Configuration (CLI args > ENV > YAML > Defaults)
    try:
        config = apply_overrides(
            load_config(args.config),
            {
                "input": {"source": args.source},
                "detection": {
                    "confidence_threshold": args.confidence,
                    "nms_threshold": args.nms,
                    "class_agnostic_nms": False if args.per_class_nms else None,
                },
                "model": {"backend": args.backend},
                "output": {"mode": args.output_mode, "save_path": args.output_path},
            },
        )
    except Exception as e:
        logger.error("Configuration error: %s", e)
        return 1

    # 2. Startup: any failure here is fatal
    try:
        detector = Detector(config)
        input_handler = InputHandler(
            source=config.input.source,
            resize_width=config.input.resize_width,
            max_read_failures=config.input.max_read_failures,
        )
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error("Initialization failed: %s", e)
        return 1

    try:
        output_handler = OutputHandler(config, detector.class_names)
    except Exception as e:
        logger.exception("Unexpected initialization error: %s", e)
        input_handler.release()
        return 1

    # 3. Frame loop
    logger.info("Starting processing loop. Press 'q' or ESC to quit in display mode.")

    exit_code = 0
    frame_count = 0
    start_time = time.perf_counter()

    try:
        frame_count = run_pipeline(detector, input_handler, output_handler)
    except Exception as e:
        logger.exception("Runtime error during processing: %s", e)
        exit_code = 1
    finally:
        elapsed = time.perf_counter() - start_time
        fps = frame_count / elapsed if elapsed > 0 else 0.0

        input_handler.release()
        try:
            output_handler.finalize()
        except Exception as e:
            logger.exception("Failed to finalize outputs: %s", e)
            exit_code = 1

        logger.info(
            "Processing finished. Total frames: %d. Avg FPS: %.2f.",
            frame_count, fps,
        )

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
