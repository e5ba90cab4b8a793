import json
import logging
import time
from typing import Any, Dict, List, Optional, Tuple
import requests

class RateLimiter:
    """Non-blocking variant: callers ask whether enough time has passed and skip otherwise."""
    def __init__(self, min_interval_s: float = 1.0):
        self.min_interval_s = min_interval_s
        self.last_ts: Optional[float] = None

    def ready(self, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        if self.last_ts is not None and now - self.last_ts < self.min_interval_s:
            return False
        self.last_ts = now
        return True

    def reset(self):
        self.last_ts = None

class RelayEmitter:
    """
    Posts control/telemetry messages to the display relay.

    Delivery is best-effort: any transport error is logged and dropped so the
    estimation pipeline keeps running when the relay is down.
    """
    def __init__(self, url: str, timeout_s: float = 0.5, session: Optional[requests.Session] = None):
        if not url:
            raise RuntimeError("Relay URL required (telemetry.url).")
        self.url = url
        self.timeout_s = timeout_s
        self.http = session or requests.Session()
        self.failures = 0
        self.logger = logging.getLogger('EnergyBodies.Relay')

    def send(self, channel: str, payload: Dict[str, Any]) -> bool:
        body = {"type": channel, "payload": payload}
        try:
            self.http.post(self.url, data=json.dumps(body), timeout=self.timeout_s,
                           headers={"Content-Type": "application/json"}).raise_for_status()
        except Exception as e:
            self.failures += 1
            # one line per burst of failures, not per frame
            if self.failures == 1 or self.failures % 100 == 0:
                self.logger.warning(f"⚠️ Relay send failed ({self.failures}x): {e}")
            return False
        if self.failures:
            self.logger.info(f"✅ Relay reachable again after {self.failures} failures")
            self.failures = 0
        return True

class DummyEmitter:
    """Collects messages in-memory; used for tests and dry runs."""
    def __init__(self):
        self.messages: List[Tuple[str, Dict[str, Any]]] = []
    def send(self, channel: str, payload: Dict[str, Any]) -> bool:
        self.messages.append((channel, payload))
        return True
    def channel(self, name: str) -> List[Dict[str, Any]]:
        return [p for c, p in self.messages if c == name]
