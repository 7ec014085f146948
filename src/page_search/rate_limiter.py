"""
Token-bucket admission control for new searches.
"""

from __future__ import annotations

import math
import threading
import time
from typing import Callable


class TokenBucket:
    """
    Allow ``max_tokens`` acquisitions per ``refill_window`` seconds.

    The bucket refills in whole windows: each fully elapsed window adds
    ``max_tokens``, capped at ``max_tokens``. Only whole windows advance
    ``last_refill``, so a denied check does not restart the current window.
    """

    def __init__(
        self,
        max_tokens: int = 10,
        refill_window: float = 60.0,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_tokens <= 0:
            raise ValueError("max_tokens must be > 0")
        if refill_window <= 0:
            raise ValueError("refill_window must be > 0")
        self.max_tokens = float(max_tokens)
        self.refill_window = float(refill_window)
        self.tokens = float(max_tokens)
        self._clock = clock
        self.last_refill = clock()
        self._lock = threading.Lock()

    def try_acquire(self) -> bool:
        """Refill, then take one token if any are left."""
        with self._lock:
            self._refill()
            if self.tokens > 0:
                self.tokens -= 1
                return True
            return False

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self.last_refill)
        windows = math.floor(elapsed / self.refill_window)
        if windows:
            self.tokens = min(self.max_tokens, self.tokens + windows * self.max_tokens)
            self.last_refill += windows * self.refill_window
