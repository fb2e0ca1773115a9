"""Clone-sign trainer: record labelled two-hand poses, fit the classifier, save it.

Keys: 1 record clone sign, 2 record other, T train, S save model,
E export data, I import data, C clear data, ESC quit.
"""

import argparse
import logging
import os
import time

import cv2
import numpy as np

from compositor import draw_finger_skeleton, draw_text
from gesture import MODEL_PATH, GestureDetector, GestureModel
from samples import CLONE_SIGN, NOT_SIGN, Recorder, SampleStore, save_model, train_model

logger = logging.getLogger(__name__)

W, H = 640, 480
CAP_IDX = 0
DATA_PATH = "gesture-data.json"
WINDOW = "Clone sign trainer"
SKELETON_COLOR = (94, 197, 34)   # BGR green
JOINT_COLOR = (68, 68, 239)      # BGR red
BAR_COLOR = (0, 200, 0)

KEY_LABELS = {ord("1"): CLONE_SIGN, ord("2"): NOT_SIGN}


def now_ms():
    return time.perf_counter() * 1000.0


def mirror_pose(pose):
    # display only; recorded features keep camera coordinates
    out = np.array(pose, dtype=np.float64)
    out[:, 0] = 1.0 - out[:, 0]
    return out


def draw_confidence_bar(frame, prob):
    h, w = frame.shape[:2]
    x0, y0, bw, bh = 8, h - 30, w - 16, 14
    cv2.rectangle(frame, (x0, y0), (x0 + bw, y0 + bh), (60, 60, 60), -1)
    cv2.rectangle(frame, (x0, y0), (x0 + int(bw * prob), y0 + bh), BAR_COLOR, -1)
    draw_text(frame, f"{prob * 100:.0f}%", x0, y0 - 6, (255, 255, 255))


class TrainerApp:
    """Keyboard-driven state around a SampleStore, a Recorder and a live model."""

    def __init__(self, data_path=DATA_PATH, model_path=MODEL_PATH, seed=None):
        self.data_path = data_path
        self.model_path = model_path
        self.seed = seed
        self.store = SampleStore()
        self.recorder = Recorder()
        self.model = None
        self.detector = GestureDetector(None)
        self.status = "Press 1 (clone sign) or 2 (other) to record."

    def handle_key(self, key, now):
        if key in KEY_LABELS:
            label = KEY_LABELS[key]
            self.recorder.start(label, now)
            self.status = f"Recording {label.replace('_', ' ')} soon, get into position!"
        elif key == ord("t"):
            self.train()
        elif key == ord("s"):
            self.save()
        elif key == ord("e"):
            self.store.export_json(self.data_path)
            self.status = f"Data exported to {self.data_path}."
        elif key == ord("i"):
            self.import_data()
        elif key == ord("c"):
            self.store.clear()
            self.status = "Data cleared."

    def train(self):
        try:
            estimator = train_model(self.store, seed=self.seed)
        except ValueError as e:
            self.status = str(e)
            return False
        self.model = GestureModel(estimator)
        self.detector.model = self.model
        n = sum(self.store.counts().values())
        self.status = f"Done! {n} samples. Model is live, test your sign."
        return True

    def save(self):
        if self.model is None:
            self.status = "Train a model first."
            return False
        save_model(self.model.estimator, self.model_path)
        self.status = f"Model saved to {self.model_path}."
        return True

    def import_data(self):
        if not os.path.isfile(self.data_path):
            self.status = f"{self.data_path} not found."
            return False
        try:
            self.store.import_json(self.data_path)
        except (OSError, ValueError) as e:
            logger.error("Import failed: %s", e)
            self.status = "Import failed."
            return False
        self.status = "Data imported."
        return True

    def step(self, right, left, now):
        """Per-frame update; returns (badge, probability or None)."""
        was_busy = self.recorder.state != "idle"
        badge = self.recorder.update(now)
        self.recorder.capture(right, left, self.store)
        if was_busy and not badge:
            self.status = "Done! Captured samples. Record more or train."
        # same fail-closed scoring as the live effect; None when nothing was scored
        self.detector.evaluate(right, left)
        return badge, self.detector.last_probability


def parse_args(argv=None):
    p = argparse.ArgumentParser(description="Record clone-sign samples and train the gesture model.")
    p.add_argument("--camera", type=int, default=CAP_IDX)
    p.add_argument("--data", default=DATA_PATH)
    p.add_argument("--model", default=MODEL_PATH)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--debug", action="store_true")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO,
                        format="[%(levelname)s] %(message)s")

    from tracking import BodyTracker

    cap = cv2.VideoCapture(args.camera)
    cap.set(cv2.CAP_PROP_FRAME_WIDTH, W)
    cap.set(cv2.CAP_PROP_FRAME_HEIGHT, H)
    if not cap.isOpened():
        logger.error("Cannot open camera %d", args.camera)
        return 1

    tracker = BodyTracker(segmentation=False)
    app = TrainerApp(args.data, args.model, seed=args.seed)

    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                break
            right, left, _ = tracker.process(frame)
            now = now_ms()
            badge, prob = app.step(right, left, now)

            view = cv2.flip(frame, 1)
            for pose in (right, left):
                if pose is not None:
                    draw_finger_skeleton(view, mirror_pose(pose), SKELETON_COLOR, JOINT_COLOR)
            counts = app.store.counts()
            draw_text(view, f"clone: {counts[CLONE_SIGN]}  other: {counts[NOT_SIGN]}", 8, 22, (255, 255, 255))
            if badge:
                draw_text(view, badge, 8, 50, (0, 0, 255))
            draw_text(view, app.status, 8, 78, (255, 255, 255))
            if prob is not None:
                draw_confidence_bar(view, prob)

            cv2.imshow(WINDOW, view)
            key = cv2.waitKey(1) & 0xFF
            if key == 27:
                break
            if key != 255:
                app.handle_key(key, now)
    finally:
        cap.release()
        tracker.close()
        cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
