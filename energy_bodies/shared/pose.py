from dataclasses import dataclass
from typing import Dict, Tuple, Optional, Sequence
import math

# COCO-17 keypoint names in detector order
COCO17 = [
    "nose","left_eye","right_eye","left_ear","right_ear",
    "left_shoulder","right_shoulder","left_elbow","right_elbow",
    "left_wrist","right_wrist","left_hip","right_hip",
    "left_knee","right_knee","left_ankle","right_ankle"
]

EMOTION_NAMES = ["anxiety", "sadness", "joy", "anger", "fear", "calm"]
REGION_NAMES = ["head", "neck", "arms_hands", "chest", "abdomen", "legs_feet"]
SPINE = "spine"

# Parts whose motion drives each region's velocity term
REGION_KEYPOINTS = {
    "head": ("nose", "left_eye", "right_eye", "left_ear", "right_ear"),
    "neck": ("left_shoulder", "right_shoulder"),
    "chest": ("left_shoulder", "right_shoulder", "left_elbow", "right_elbow", "left_wrist", "right_wrist"),
    "arms_hands": ("left_wrist", "right_wrist", "left_elbow", "right_elbow"),
    "abdomen": ("left_hip", "right_hip"),
    "legs_feet": ("left_knee", "right_knee", "left_ankle", "right_ankle"),
}

DEFAULT_FRAME_SIZE = (640, 480)

Keypoint = Tuple[float, float, float]  # (x, y, score) in detector pixels

@dataclass
class PoseResult:
    keypoints: Dict[str, Keypoint]                    # name -> (x, y, score)
    score: float                                      # overall pose confidence
    ts: float                                         # timestamp (seconds)
    frame_size: Tuple[int, int] = DEFAULT_FRAME_SIZE  # detector (width, height)

    def get(self, name: str, min_score: float) -> Optional[Tuple[float, float]]:
        """Position of `name` if it was detected with at least `min_score`."""
        kp = self.keypoints.get(name)
        if not kp or kp[2] < min_score:
            return None
        return (kp[0], kp[1])

    def confident(self, min_score: float) -> Dict[str, Tuple[float, float]]:
        return {n: (kp[0], kp[1]) for n, kp in self.keypoints.items() if kp[2] >= min_score}

    @property
    def diagonal(self) -> float:
        w, h = self.frame_size
        return math.hypot(w, h) or 1.0

def primary_pose(results: Sequence[PoseResult]) -> Optional[PoseResult]:
    """Detectors may report several people; only the first is tracked."""
    if not results:
        return None
    return results[0]

def dist(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    return math.hypot(a[0]-b[0], a[1]-b[1])

def midpoint(a: Tuple[float, float], b: Tuple[float, float]) -> Tuple[float, float]:
    return ((a[0]+b[0])/2.0, (a[1]+b[1])/2.0)

def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t

def remap(v: float, in_min: float, in_max: float, out_min: float, out_max: float) -> float:
    if in_max == in_min:
        return out_min
    return out_min + (v - in_min) * (out_max - out_min) / (in_max - in_min)

def clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, v))
