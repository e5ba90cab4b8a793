import json
import time
from typing import Dict, Any, Optional, List
from ..shared.pose import PoseResult, DEFAULT_FRAME_SIZE, primary_pose

def parse_detection(obj: Dict[str, Any]) -> List[PoseResult]:
    """
    One recorded detection event -> pose results.

    Accepts either a single pose `{"score", "keypoints", "vw", "vh", "t"}` or
    `{"poses": [...]}`. Keypoints are `[name, x, y, score]` rows; when
    `"normalized": true` the coordinates are scaled by vw/vh back to pixels.
    """
    poses = obj.get("poses")
    if poses is None:
        poses = [obj]
    out = []
    for p in poses:
        vw = int(p.get("vw", obj.get("vw", DEFAULT_FRAME_SIZE[0])))
        vh = int(p.get("vh", obj.get("vh", DEFAULT_FRAME_SIZE[1])))
        sx, sy = (vw, vh) if p.get("normalized", obj.get("normalized", False)) else (1.0, 1.0)
        kp = {}
        for row in p.get("keypoints", []):
            name, x, y, score = row[0], float(row[1]), float(row[2]), float(row[3])
            kp[name] = (x*sx, y*sy, score)
        ts = float(p.get("t", obj.get("t", time.time())))
        score = float(p.get("score", sum(v[2] for v in kp.values())/len(kp) if kp else 0.0))
        out.append(PoseResult(kp, score, ts, (vw, vh)))
    return out

class JsonlReplayBackend:
    """Replays detections recorded one JSON object per line; blank or bad lines are skipped."""
    def __init__(self, path: str, loop: bool = False):
        self.path = path
        self.loop = loop
        with open(path, "r") as f:
            self.lines = [ln for ln in f if ln.strip()]
        self.idx = 0
        self.bad_lines = 0

    def infer(self, _frame=None) -> Optional[PoseResult]:
        for _ in range(len(self.lines)):
            if self.idx >= len(self.lines):
                if not self.loop:
                    break
                self.idx = 0
            line = self.lines[self.idx]
            self.idx += 1
            try:
                return primary_pose(parse_detection(json.loads(line)))
            except (ValueError, KeyError, IndexError, TypeError):
                self.bad_lines += 1
                continue
        return PoseResult({}, 0.0, time.time())
