"""
Online session statistics.

Each field keeps its own running mean (`mean += (x - mean) / n`), so a long
session never sums raw values and non-finite samples can be skipped per field
without skewing the others.
"""

from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Sequence, Any
import logging
import math
import time
import numpy as np
from ..shared.pose import EMOTION_NAMES, REGION_NAMES

SEGMENT_PROFILE_LEN = 3

class OnlineMean:
    def __init__(self):
        self.mean = 0.0
        self.n = 0

    def add(self, x) -> bool:
        try:
            x = float(x)
        except (TypeError, ValueError):
            return False
        if not math.isfinite(x):
            return False
        self.n += 1
        self.mean += (x - self.mean) / self.n
        return True

class OnlineMeanVector:
    """Element-wise running mean; a sample of a different length restarts the field."""
    def __init__(self, length: int = 0):
        self.means = np.zeros(length, dtype=np.float64)
        self.counts = np.zeros(length, dtype=np.int64)

    def add(self, values: Optional[Sequence[float]]) -> bool:
        if values is None or len(values) == 0:
            return False
        try:
            x = np.asarray(values, dtype=np.float64).ravel()
        except (TypeError, ValueError):
            return False
        if x.shape[0] != self.means.shape[0]:
            self.means = np.zeros(x.shape[0], dtype=np.float64)
            self.counts = np.zeros(x.shape[0], dtype=np.int64)
        ok = np.isfinite(x)
        self.counts[ok] += 1
        self.means[ok] += (x[ok] - self.means[ok]) / self.counts[ok]
        return True

    def tolist(self) -> List[float]:
        return self.means.tolist()

@dataclass
class SessionSummary:
    duration_s: float
    samples: int
    structure: float
    balance: float
    posture: float
    velocity: float
    emotions: Dict[str, float] = field(default_factory=dict)
    region_widths: List[float] = field(default_factory=list)
    segment_profile: List[float] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

class SessionAccumulator:
    def __init__(self):
        self.logger = logging.getLogger('EnergyBodies.Session')
        self._reset()

    def _reset(self):
        self.active = False
        self.start_time = 0.0
        self.last_time = 0.0
        self.samples = 0
        self.structure = OnlineMean()
        self.balance = OnlineMean()
        self.posture = OnlineMean()
        self.velocity = OnlineMean()
        self.emotions = {n: OnlineMean() for n in EMOTION_NAMES}
        self.region_widths = OnlineMeanVector(len(REGION_NAMES))
        self.segment_profile = OnlineMeanVector(SEGMENT_PROFILE_LEN)

    def begin(self, now: Optional[float] = None):
        now = time.time() if now is None else now
        self._reset()
        self.active = True
        self.start_time = now
        self.last_time = now
        self.logger.info("🟢 Session started averaging")

    def add(self, sample: Dict[str, Any], now: Optional[float] = None):
        if not self.active:
            return
        self.last_time = time.time() if now is None else now

        # absent scalars count as 0, like an idle slider
        for name in ("structure", "balance", "posture", "velocity"):
            v = sample.get(name)
            getattr(self, name).add(0.0 if v is None else v)

        emotions = sample.get("emotions")
        if emotions:
            for k, acc in self.emotions.items():
                v = emotions.get(k)
                acc.add(0.0 if v is None else v)

        if sample.get("region_widths") is not None:
            self.region_widths.add(sample["region_widths"])
        if sample.get("segment_profile") is not None:
            self.segment_profile.add(sample["segment_profile"])

        self.samples += 1

    def end(self, now: Optional[float] = None) -> Optional[SessionSummary]:
        if not self.active:
            return None
        now = time.time() if now is None else now
        out = SessionSummary(
            duration_s=max(0.0, now - self.start_time) if self.start_time else 0.0,
            samples=self.samples,
            structure=self.structure.mean,
            balance=self.balance.mean,
            posture=self.posture.mean,
            velocity=self.velocity.mean,
            emotions={k: acc.mean for k, acc in self.emotions.items()},
            region_widths=self.region_widths.tolist(),
            segment_profile=self.segment_profile.tolist(),
        )
        self.active = False
        self.logger.info(f"🛑 Session ended: samples={out.samples} duration={out.duration_s:.1f}s")
        return out
