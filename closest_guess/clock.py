import logging
import threading
import time

import requests

from .config import CLOCK_SOURCE, HELIUS_API_KEY, HELIUS_RPC_URL
from .errors import ClockUnavailableError

logger = logging.getLogger(__name__)


class ClockSource:
    """
    Monotonic integer height. Phase deadlines are evaluated against it.

    Subclasses implement `_read()`; `now()` never reports a height lower than
    one it already returned.
    """

    def __init__(self):
        self._last = 0
        self._lock = threading.Lock()

    def _read(self) -> int:
        raise NotImplementedError

    def now(self) -> int:
        height = int(self._read())
        with self._lock:
            if height < self._last:
                logger.warning(f"[clock] source went backwards ({height} < {self._last}); holding")
                return self._last
            self._last = height
            return height


class ManualClock(ClockSource):
    """Height moved by hand (tests, local runs)."""

    def __init__(self, height: int = 1):
        super().__init__()
        if height < 0:
            raise ValueError("height must be >= 0")
        self._height = int(height)

    def _read(self) -> int:
        return self._height

    def set(self, height: int):
        if height < self._height:
            raise ValueError(f"clock cannot move backwards ({height} < {self._height})")
        self._height = int(height)

    def advance(self, delta: int = 1):
        if delta < 0:
            raise ValueError("delta must be >= 0")
        self._height += int(delta)


class UnixClock(ClockSource):
    def _read(self) -> int:
        return int(time.time())


class SlotClock(ClockSource):
    """
    Current Solana slot via Helius RPC (getSlot).
    """

    def __init__(self, api_key: str = None, rpc_url: str = HELIUS_RPC_URL, timeout: int = 30):
        super().__init__()
        self.api_key = api_key if api_key is not None else HELIUS_API_KEY
        self.rpc_url = rpc_url
        self.timeout = timeout

    def _read(self) -> int:
        if not self.api_key:
            raise ClockUnavailableError("HELIUS_API_KEY not configured")

        payload = {
            "jsonrpc": "2.0",
            "id": "slot",
            "method": "getSlot",
            "params": []
        }

        try:
            r = requests.post(
                f"{self.rpc_url}?api-key={self.api_key}",
                json=payload,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ClockUnavailableError(f"Helius RPC failed: {str(e)}") from e

        if r.status_code != 200:
            raise ClockUnavailableError(f"Helius error {r.status_code}: {r.text}")

        data = r.json()
        if "error" in data:
            raise ClockUnavailableError(f"Helius RPC error: {data['error']}")

        result = data.get("result")
        if result is None:
            raise ClockUnavailableError("Helius returned no slot")

        return int(result)


def build_clock(source: str = CLOCK_SOURCE) -> ClockSource:
    if source == "slot":
        return SlotClock()
    if source == "unix":
        return UnixClock()
    raise ValueError(f"unknown clock source: {source!r}")
