"""Clone-sign detection: a joblib-persisted classifier plus a thresholded detector."""

import logging
import os

import joblib
import numpy as np

from pose import extract_features

logger = logging.getLogger(__name__)

MODEL_PATH = "gesture-model.joblib"
GESTURE_THRESHOLD = 0.999   # near-certain so casual hand movement never fires it
FEATURE_LEN = 126


class GestureModel:
    """Wraps a fitted scikit-learn binary classifier.

    Stays not-ready until a model is attached; a failed load leaves it not-ready
    for good instead of raising into the frame loop.
    """

    def __init__(self, estimator=None):
        self._estimator = None
        self._failed = False
        if estimator is not None:
            self.attach(estimator)

    @property
    def ready(self):
        return self._estimator is not None

    @property
    def estimator(self):
        return self._estimator

    @property
    def failed(self):
        return self._failed

    def attach(self, estimator):
        if self._failed:
            logger.warning("Gesture model previously failed to load; ignoring attach")
            return
        self._estimator = estimator

    def load(self, path=MODEL_PATH):
        if not os.path.isfile(path):
            logger.error("Failed to load gesture model: %s not found", path)
            self._failed = True
            return False
        try:
            estimator = joblib.load(path)
            if not hasattr(estimator, "predict_proba"):
                raise TypeError(f"{type(estimator).__name__} has no predict_proba")
        except Exception:
            logger.exception("Failed to load gesture model from %s", path)
            self._failed = True
            return False
        self._estimator = estimator
        logger.info("Gesture model loaded from %s", path)
        return True

    def predict(self, vector):
        if self._estimator is None:
            raise RuntimeError("gesture model not loaded")
        x = np.asarray(vector, dtype=np.float64).reshape(1, -1)
        if x.shape[1] != FEATURE_LEN:
            raise ValueError(f"expected {FEATURE_LEN} features, got {x.shape[1]}")
        proba = self._estimator.predict_proba(x)[0]
        classes = list(getattr(self._estimator, "classes_", [0, 1]))
        idx = classes.index(1) if 1 in classes else len(proba) - 1
        return float(proba[idx])


class GestureDetector:
    """One decision per call: both hands present and the score clears the threshold.

    `on_confidence` receives the score as a percentage each time a vector was
    scored, whatever the outcome.
    """

    def __init__(self, model, threshold=GESTURE_THRESHOLD, on_confidence=None):
        self.model = model
        self.threshold = threshold
        self.on_confidence = on_confidence
        self.last_probability = None

    def evaluate(self, right, left):
        self.last_probability = None
        if right is None or left is None:
            return False
        if self.model is None or not self.model.ready:
            return False
        try:
            vector = extract_features(right, left)
            prob = float(self.model.predict(vector))
        except Exception:
            logger.exception("Gesture scoring failed; skipping this frame")
            return False
        if not np.isfinite(prob):
            return False
        self.last_probability = prob
        if self.on_confidence is not None:
            self.on_confidence(prob * 100.0)
        return prob > self.threshold
