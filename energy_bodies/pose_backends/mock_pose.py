import time
from typing import Iterator, Dict, Tuple, Optional
from ..shared.pose import PoseResult, COCO17, DEFAULT_FRAME_SIZE

def _make_empty_kp() -> Dict[str, Tuple[float,float,float]]:
    return {name:(0.0,0.0,0.0) for name in COCO17}

def standing_kp(cx: float = 320.0, top: float = 100.0, shoulder_w: float = 120.0,
                wrist_spread: float = 1.0, score: float = 0.9) -> Dict[str, Tuple[float,float,float]]:
    """Upright skeleton in 640x480 pixels. `wrist_spread` scales how far the wrists sit from the body."""
    h = shoulder_w / 2.0
    kp = _make_empty_kp()
    kp["nose"] = (cx, top, score)
    kp["left_eye"] = (cx - 12, top - 10, score); kp["right_eye"] = (cx + 12, top - 10, score)
    kp["left_ear"] = (cx - 25, top - 5, score); kp["right_ear"] = (cx + 25, top - 5, score)
    sy = top + 60
    kp["left_shoulder"] = (cx - h, sy, score); kp["right_shoulder"] = (cx + h, sy, score)
    kp["left_elbow"] = (cx - h - 10*wrist_spread, sy + 70, score)
    kp["right_elbow"] = (cx + h + 10*wrist_spread, sy + 70, score)
    kp["left_wrist"] = (cx - h - 20*wrist_spread, sy + 140, score)
    kp["right_wrist"] = (cx + h + 20*wrist_spread, sy + 140, score)
    hy = sy + 150
    kp["left_hip"] = (cx - h*0.7, hy, score); kp["right_hip"] = (cx + h*0.7, hy, score)
    kp["left_knee"] = (cx - h*0.7, hy + 90, score); kp["right_knee"] = (cx + h*0.7, hy + 90, score)
    kp["left_ankle"] = (cx - h*0.8, hy + 170, score); kp["right_ankle"] = (cx + h*0.8, hy + 170, score)
    return kp

def sequence_standing_still(fps: int = 15, seconds: float = 2.0, score: float = 0.9,
                            start: Optional[float] = None) -> Iterator[PoseResult]:
    now = time.time() if start is None else start
    for i in range(int(seconds*fps)):
        yield PoseResult(standing_kp(score=score), score, now + i/fps, DEFAULT_FRAME_SIZE)

def sequence_arm_raise(fps: int = 15, seconds: float = 3.0, start: Optional[float] = None) -> Iterator[PoseResult]:
    # wrists sweep outward and up; reach and wrist spread grow
    now = time.time() if start is None else start
    n = int(seconds*fps)
    for i in range(n):
        frac = (i+1)/n
        kp = standing_kp()
        sy = kp["left_shoulder"][1]
        lx, rx = kp["left_shoulder"][0], kp["right_shoulder"][0]
        kp["left_wrist"] = (lx - 250*frac, sy + 140 - 200*frac, 0.9)
        kp["right_wrist"] = (rx + 250*frac, sy + 140 - 200*frac, 0.9)
        kp["left_elbow"] = (lx - 120*frac, sy + 70 - 100*frac, 0.9)
        kp["right_elbow"] = (rx + 120*frac, sy + 70 - 100*frac, 0.9)
        yield PoseResult(kp, 0.9, now + i/fps, DEFAULT_FRAME_SIZE)

def sequence_burst(fps: int = 15, still_s: float = 2.0, burst_s: float = 0.5,
                   start: Optional[float] = None) -> Iterator[PoseResult]:
    # quiet standing, then the whole body jumps sideways every frame
    now = time.time() if start is None else start
    for i in range(int(still_s*fps)):
        yield PoseResult(standing_kp(), 0.9, now + i/fps, DEFAULT_FRAME_SIZE)
    for i in range(int(burst_s*fps)):
        cx = 320.0 + (80.0 if i % 2 == 0 else -80.0)
        yield PoseResult(standing_kp(cx=cx), 0.9, now + still_s + i/fps, DEFAULT_FRAME_SIZE)

def sequence_occlusion(fps: int = 15, visible_s: float = 1.0, hidden_s: float = 1.0,
                       start: Optional[float] = None) -> Iterator[PoseResult]:
    # torso points drop below confidence, then return unchanged
    now = time.time() if start is None else start
    for i in range(int(visible_s*fps)):
        yield PoseResult(standing_kp(), 0.9, now + i/fps, DEFAULT_FRAME_SIZE)
    for i in range(int(hidden_s*fps)):
        kp = standing_kp()
        for name in ("left_shoulder","right_shoulder","left_hip","right_hip"):
            x, y, _ = kp[name]
            kp[name] = (x, y, 0.1)
        yield PoseResult(kp, 0.5, now + visible_s + i/fps, DEFAULT_FRAME_SIZE)
    for i in range(int(visible_s*fps)):
        yield PoseResult(standing_kp(), 0.9, now + visible_s + hidden_s + i/fps, DEFAULT_FRAME_SIZE)

def sequence_demo(fps: int = 15) -> Iterator[PoseResult]:
    now = time.time()
    yield from sequence_standing_still(fps, 2.0, start=now)
    yield from sequence_arm_raise(fps, 3.0, start=now + 2.0)
    yield from sequence_burst(fps, 1.0, 1.0, start=now + 5.0)

class MockBackend:
    def __init__(self, seq: Iterator[PoseResult]):
        self.seq = seq
    def infer(self, _frame=None) -> PoseResult:
        try:
            return next(self.seq)
        except StopIteration:
            # nobody in view once the script runs out
            return PoseResult({}, 0.0, time.time())
