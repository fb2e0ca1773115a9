"""MediaPipe landmark and segmentation providers for the camera loop."""

import logging

import cv2
import mediapipe as mp

from pose import landmarks_to_array

logger = logging.getLogger(__name__)

mp_holistic = mp.solutions.holistic
mp_selfie = mp.solutions.selfie_segmentation


class BodyTracker:
    """Runs holistic hand tracking and selfie segmentation on a BGR frame.

    process() returns (right, left, mask): 21x3 arrays or None per hand, and a
    float mask in [0, 1] (None until segmentation produced one).
    """

    def __init__(self, segmentation=True, model_complexity=1):
        self._holistic = mp_holistic.Holistic(
            static_image_mode=False,
            model_complexity=model_complexity,
            smooth_landmarks=True,
        )
        self._selfie = mp_selfie.SelfieSegmentation(model_selection=1) if segmentation else None
        self.last_mask = None

    def process(self, frame_bgr):
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        rgb.flags.writeable = False
        mask = None
        if self._selfie is not None:
            seg = self._selfie.process(rgb)
            if seg is not None and seg.segmentation_mask is not None:
                mask = seg.segmentation_mask
                self.last_mask = mask
        res = self._holistic.process(rgb)
        right = landmarks_to_array(getattr(res, "right_hand_landmarks", None))
        left = landmarks_to_array(getattr(res, "left_hand_landmarks", None))
        return right, left, mask

    def close(self):
        self._holistic.close()
        if self._selfie is not None:
            self._selfie.close()
