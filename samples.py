"""Recording and training support for the clone-sign classifier."""

import json
import logging

import joblib
import numpy as np
from sklearn.neural_network import MLPClassifier

from gesture import FEATURE_LEN
from pose import extract_features

logger = logging.getLogger(__name__)

CLONE_SIGN = "clone_sign"
NOT_SIGN = "not_sign"
LABELS = (CLONE_SIGN, NOT_SIGN)

COUNTDOWN_MS = 3000   # get-ready time before recording
RECORD_MS = 4000      # recording window
MIN_SAMPLES = 5

HIDDEN_LAYERS = (64, 32)
MAX_EPOCHS = 50
BATCH_SIZE = 16


class SampleStore:
    def __init__(self):
        self.samples = {label: [] for label in LABELS}

    def add(self, label, vector):
        if label not in self.samples:
            raise ValueError(f"unknown label {label!r}")
        self.samples[label].append([float(v) for v in vector])

    def counts(self):
        return {label: len(rows) for label, rows in self.samples.items()}

    def clear(self):
        for rows in self.samples.values():
            rows.clear()

    @staticmethod
    def _checked_row(path, label, i, row):
        if not isinstance(row, list) or len(row) != FEATURE_LEN:
            raise ValueError(f"{path}: {label}[{i}] must hold {FEATURE_LEN} numbers")
        if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in row):
            raise ValueError(f"{path}: {label}[{i}] has non-numeric values")
        vals = [float(v) for v in row]
        if not np.all(np.isfinite(vals)):
            raise ValueError(f"{path}: {label}[{i}] has non-finite values")
        return vals

    def to_json(self):
        return json.dumps(self.samples)

    def export_json(self, path):
        with open(path, "w") as f:
            f.write(self.to_json())
        logger.info("Exported %s to %s", self.counts(), path)

    def import_json(self, path):
        with open(path, "r") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected an object keyed by label, got {type(data).__name__}")
        # validate everything before touching the store so a bad file imports nothing
        staged = {}
        for label in LABELS:
            rows = data.get(label) or []
            if not isinstance(rows, list):
                raise ValueError(f"{path}: {label} must be a list of samples")
            staged[label] = [self._checked_row(path, label, i, row) for i, row in enumerate(rows)]
        for label, rows in staged.items():
            self.samples[label].extend(rows)
        logger.info("Imported samples from %s, now %s", path, self.counts())
        return self.counts()

    def dataset(self):
        xs, ys = [], []
        for row in self.samples[CLONE_SIGN]:
            xs.append(row); ys.append(1)
        for row in self.samples[NOT_SIGN]:
            xs.append(row); ys.append(0)
        return np.array(xs, dtype=np.float64), np.array(ys, dtype=np.int64)


class Recorder:
    """Countdown then timed capture, polled with the frame clock.

    States: idle -> countdown -> recording -> idle. Starting a new session
    cancels whatever was running.
    """

    def __init__(self, countdown_ms=COUNTDOWN_MS, record_ms=RECORD_MS):
        self.countdown_ms = countdown_ms
        self.record_ms = record_ms
        self.state = "idle"
        self.label = None
        self.phase_start = None

    @property
    def recording(self):
        return self.state == "recording"

    def start(self, label, now):
        if label not in LABELS:
            raise ValueError(f"unknown label {label!r}")
        self.cancel()
        self.state = "countdown"
        self.label = label
        self.phase_start = now

    def cancel(self):
        self.state = "idle"
        self.label = None
        self.phase_start = None

    def update(self, now):
        """Advance the phase; returns the badge text ('' when idle)."""
        if self.state == "countdown":
            left = self.countdown_ms - (now - self.phase_start)
            if left > 0:
                return f"GET READY... {int(np.ceil(left / 1000.0))}"
            self.state = "recording"
            self.phase_start = now
            logger.info("Recording %s", self.label)
        if self.state == "recording":
            left = self.record_ms - (now - self.phase_start)
            if left > 0:
                return f"REC {int(np.ceil(left / 1000.0))}s"
            logger.info("Finished recording %s", self.label)
            self.cancel()
        return ""

    def capture(self, right, left, store):
        if not self.recording:
            return False
        vector = extract_features(right, left)
        if vector is None:
            return False
        store.add(self.label, vector)
        return True


def train_model(store, seed=None):
    counts = store.counts()
    if counts[CLONE_SIGN] < MIN_SAMPLES or counts[NOT_SIGN] < MIN_SAMPLES:
        raise ValueError(f"need at least {MIN_SAMPLES} samples each, have {counts}")
    xs, ys = store.dataset()
    rng = np.random.default_rng(seed)
    order = rng.permutation(len(ys))
    xs, ys = xs[order], ys[order]
    model = MLPClassifier(
        hidden_layer_sizes=HIDDEN_LAYERS,
        activation="relu",
        solver="adam",
        batch_size=min(BATCH_SIZE, len(ys)),
        max_iter=MAX_EPOCHS,
        shuffle=True,
        random_state=seed,
    )
    model.fit(xs, ys)
    acc = model.score(xs, ys)
    logger.info("Trained on %d samples, accuracy %.1f%%", len(ys), acc * 100.0)
    return model


def save_model(model, path):
    joblib.dump(model, path)
    logger.info("Model saved to %s", path)
