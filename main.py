import argparse
import logging
import random
import time

import cv2

from compositor import cut_person, draw_text
from gesture import GESTURE_THRESHOLD, MODEL_PATH, GestureModel
from session import OVERLAY_TRIGGERED, SessionState
from smoke import ASSET_DIR, SmokePool

logger = logging.getLogger(__name__)

# config
W, H = 640, 480
CAP_IDX = 0
WINDOW = "Clone Jutsu (R reset, V overlay, ESC quit)"
BADGE_COLOR = (0, 140, 255)


def now_ms():
    return time.perf_counter() * 1000.0


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Webcam shadow clone effect triggered by a trained hand sign.")
    p.add_argument("--camera", type=int, default=CAP_IDX)
    p.add_argument("--model", default=MODEL_PATH, help="joblib file written by the trainer")
    p.add_argument("--assets", default=ASSET_DIR, help="folder holding smoke_1..smoke_3")
    p.add_argument("--threshold", type=float, default=GESTURE_THRESHOLD)
    p.add_argument("--seed", type=int, default=None, help="seed for smoke style choice")
    p.add_argument("--debug", action="store_true")
    return p.parse_args(argv)


def draw_status(frame, confidence, overlay_state):
    h, w = frame.shape[:2]
    if confidence is not None:
        draw_text(frame, f"Confidence: {confidence:.1f}%", 8, 22, (255, 255, 255))
    label = "JUTSU!" if overlay_state == OVERLAY_TRIGGERED else "Make the clone sign"
    draw_text(frame, label, 8, h - 12, BADGE_COLOR)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO,
                        format="[%(levelname)s] %(message)s")

    # imported late so the core modules stay usable without mediapipe installed
    from tracking import BodyTracker

    model = GestureModel()
    model.load(args.model)

    cap = cv2.VideoCapture(args.camera)
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, W)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, H)
    if not cap.isOpened():
        logger.error("Cannot open camera %d", args.camera)
        return 1

    tracker = BodyTracker()
    pool = SmokePool(asset_dir=args.assets, rng=random.Random(args.seed))
    session = None
    show_overlay = True
    confidence = None

    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                break
            h, w = frame.shape[:2]
            if session is None:
                session = SessionState(model, w, h, threshold=args.threshold, pool=pool)

            right, left, mask = tracker.process(frame)
            if mask is None:
                mask = tracker.last_mask
            if mask is None:
                # no cutout yet, nothing to animate
                cv2.imshow(WINDOW, frame)
                if cv2.waitKey(1) & 0xFF == 27:
                    break
                continue

            now = now_ms()
            result = session.tick(now, right, left)
            for name, value in result.events:
                if name == "confidence":
                    confidence = value
                elif name == "triggered":
                    logger.info("CLONE TRIGGERED")

            canvas = frame.copy()
            person, alpha = cut_person(frame, mask)
            session.render(canvas, person, alpha, result, now)
            if show_overlay:
                draw_status(canvas, confidence, session.overlay_state)

            cv2.imshow(WINDOW, canvas)
            key = cv2.waitKey(1) & 0xFF
            if key == 27:
                break
            elif key == ord("r"):
                session.request_reset()
                confidence = None
            elif key == ord("v"):
                show_overlay = not show_overlay
    finally:
        cap.release()
        tracker.close()
        cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
