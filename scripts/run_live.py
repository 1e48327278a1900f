#!/usr/bin/env python3
"""
Live face identification from a webcam.

Enrolls every image in a directory (file name = identity), then runs the
detection loop in an OpenCV window. A match opens a second window with the
live crop next to the enrolled image; press any key to resume.

Keys:
    q  quit
    p  toggle performance mode

Usage:
    python scripts/run_live.py --faces ./faces
"""

import argparse
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import cv2
import numpy as np

from visage_core.capture import list_available_cameras
from visage_core.config import load_config
from visage_core.exceptions import CaptureError, DetectorInitError
from visage_core.pipeline import IdentificationPipeline, ImportStatus, TickOutcome
from visage_core.utils import draw_annotations


LIVE_WINDOW = "Visage"
MATCH_WINDOW = "Identity verified"


def side_by_side(live: np.ndarray, reference: np.ndarray, height: int = 320) -> np.ndarray:
    """Scale two RGB images to a common height and join them."""
    panels = []
    for image in (live, reference):
        h, w = image.shape[:2]
        scale = height / max(h, 1)
        panels.append(cv2.resize(image, (max(1, int(w * scale)), height)))
    return np.hstack(panels)


def parse_args():
    parser = argparse.ArgumentParser(description="Live face identification")
    parser.add_argument("--config", type=str, default=None, help="YAML configuration file")
    parser.add_argument("--faces", type=str, default=None, help="Directory of images to enroll")
    parser.add_argument("--camera", type=int, default=None, help="Camera index")
    parser.add_argument("--performance-mode", action="store_true", help="Start in performance mode")
    parser.add_argument("--list-cameras", action="store_true", help="List camera indices and exit")
    return parser.parse_args()


def main() -> int:
    args = parse_args()

    if args.list_cameras:
        cameras = list_available_cameras()
        print(f"Available cameras: {cameras or 'none'}")
        return 0

    config = load_config(args.config)
    if args.camera is not None:
        config.camera.index = args.camera
    if args.performance_mode:
        config.detector.performance_mode = True

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    mirror = config.camera.mirror

    def show_frame(report):
        canvas = draw_annotations(report.frame, report.faces, mirror=mirror)
        cv2.putText(canvas, f"FPS: {report.fps}", (10, 30), cv2.FONT_HERSHEY_SIMPLEX,
                    0.8, (0, 255, 0), 2, cv2.LINE_AA)
        cv2.imshow(LIVE_WINDOW, cv2.cvtColor(canvas, cv2.COLOR_RGB2BGR))

    print("Initializing...")
    try:
        pipeline = IdentificationPipeline(config, on_frame=show_frame)
    except DetectorInitError as e:
        print(f"ERROR: {e}")
        return 1

    if args.faces:
        report = pipeline.importer.import_directory(args.faces)
        if report.status == ImportStatus.NONE:
            print("No valid faces found in imported photos.")
        else:
            print(f"Imported {report.enrolled} faces")

    controller = pipeline.controller
    print("Starting Camera...")
    try:
        pipeline.start_camera()
    except CaptureError:
        print(controller.status)
        return 1

    try:
        while True:
            outcome = controller.tick()
            if outcome == TickOutcome.INACTIVE:
                break

            if outcome == TickOutcome.MATCHED and controller.last_match is not None:
                event = controller.last_match
                reference = event.reference_image
                if isinstance(reference, np.ndarray):
                    panel = side_by_side(event.live_image, reference)
                else:
                    panel = event.live_image
                cv2.imshow(MATCH_WINDOW, cv2.cvtColor(panel, cv2.COLOR_RGB2BGR))
                cv2.setWindowTitle(MATCH_WINDOW, f"{event.name} ({event.score:.4f})")
                cv2.waitKey(0)
                cv2.destroyWindow(MATCH_WINDOW)
                controller.resume()
                continue

            key = cv2.waitKey(1) & 0xFF
            if key == ord("q"):
                break
            if key == ord("p"):
                controller.set_performance_mode(not controller.performance_mode)
    finally:
        controller.stop()
        cv2.destroyAllWindows()

    print(pipeline.get_statistics())
    return 0


if __name__ == "__main__":
    sys.exit(main())
