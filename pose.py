"""Hand pose helpers: landmark conversion and wrist-relative normalization."""

import numpy as np

NUM_LANDMARKS = 21
WRIST = 0
MIDDLE_MCP = 9
DEGENERATE_SCALE = 1.0
SCALE_EPS = 1e-9

# finger chains from the wrist, used for skeleton overlays
FINGER_INDICES = {
    "thumb":  [0, 1, 2, 3, 4],
    "index":  [0, 5, 6, 7, 8],
    "middle": [0, 9, 10, 11, 12],
    "ring":   [0, 13, 14, 15, 16],
    "pinky":  [0, 17, 18, 19, 20],
}


def landmarks_to_array(hand_landmarks):
    # accepts a mediapipe NormalizedLandmarkList or anything with .landmark / x,y,z points
    if hand_landmarks is None:
        return None
    pts = getattr(hand_landmarks, "landmark", hand_landmarks)
    return np.array([[p.x, p.y, p.z] for p in pts], dtype=np.float64)


def as_pose(pose):
    arr = np.asarray(pose, dtype=np.float64)
    if arr.shape != (NUM_LANDMARKS, 3):
        raise ValueError(f"hand pose must be {NUM_LANDMARKS}x3, got {arr.shape}")
    return arr


def normalize_hand(pose):
    """Wrist-relative, scale-free feature vector for one hand.

    The wrist becomes the origin and every point is divided by the wrist to
    middle-MCP distance; a degenerate distance (zero or non-finite) falls back
    to DEGENERATE_SCALE. Returns a flat float array of 63 values ordered
    x, y, z per landmark, or None if the pose is absent.
    """
    if pose is None:
        return None
    pts = as_pose(pose)
    if not np.all(np.isfinite(pts)):
        raise ValueError("hand pose contains non-finite coordinates")
    wrist = pts[WRIST]
    scale = float(np.linalg.norm(pts[MIDDLE_MCP] - wrist))
    if scale < SCALE_EPS:
        scale = DEGENERATE_SCALE
    return ((pts - wrist) / scale).reshape(-1)


def extract_features(right, left):
    """126-value two-hand vector, right hand first. None unless both hands present."""
    if right is None or left is None:
        return None
    return np.concatenate([normalize_hand(right), normalize_hand(left)])
