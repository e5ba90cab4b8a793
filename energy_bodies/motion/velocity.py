from typing import Dict, Tuple, Iterable
import numpy as np
from ..shared.pose import PoseResult, REGION_KEYPOINTS

Point = Tuple[float, float]

def _mean_displacement(cur: Dict[str, Point], prev: Dict[str, Point], diag: float) -> Dict[str, float]:
    """Per-part displacement / diag for parts present in both sets."""
    names = [n for n in cur if n in prev]
    if not names:
        return {}
    c = np.array([cur[n] for n in names], dtype=np.float64)
    p = np.array([prev[n] for n in names], dtype=np.float64)
    d = (c - p) / diag
    mags = np.hypot(d[:, 0], d[:, 1])
    return dict(zip(names, mags.tolist()))

class VelocityEstimator:
    """
    Resolution-independent keypoint velocity.

    Two caches are kept: `prev_keypoints` for the global velocity and
    `prev_by_part` for the per-region velocities. A part only overwrites its
    cached position when it passes `min_score` this frame, so a brief
    occlusion does not produce a jump when the part comes back.
    """
    def __init__(self, min_score: float = 0.5):
        self.min_score = min_score
        self.prev_keypoints: Dict[str, Point] = {}
        self.prev_by_part: Dict[str, Point] = {}
        self.part_speeds: Dict[str, float] = {}

    def global_velocity(self, pose: PoseResult) -> float:
        kp = pose.confident(self.min_score)
        if not kp:
            return 0.0
        speeds = _mean_displacement(kp, self.prev_keypoints, pose.diagonal)
        self.prev_keypoints.update(kp)
        if not speeds:
            return 0.0
        return float(sum(speeds.values()) / len(speeds))

    def update_regions(self, pose: PoseResult) -> Dict[str, float]:
        """Refresh per-part speeds from the region cache; returns velocity per region."""
        kp = pose.confident(self.min_score)
        if not kp:
            self.part_speeds = {}
            return {r: 0.0 for r in REGION_KEYPOINTS}
        self.part_speeds = _mean_displacement(kp, self.prev_by_part, pose.diagonal)
        self.prev_by_part.update(kp)
        return {r: self.region_velocity(r) for r in REGION_KEYPOINTS}

    def region_velocity(self, region: str) -> float:
        return self.parts_velocity(REGION_KEYPOINTS.get(region, ()))

    def parts_velocity(self, parts: Iterable[str]) -> float:
        speeds = [self.part_speeds[p] for p in parts if p in self.part_speeds]
        if not speeds:
            return 0.0
        return float(sum(speeds) / len(speeds))

    def clear(self):
        self.prev_keypoints.clear()
        self.prev_by_part.clear()
        self.part_speeds = {}
