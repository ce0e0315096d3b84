"""
Optional CPU/RAM throttling for long checking slices.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

import psutil


@dataclass
class ResourceMonitor:
    """Sleep between records while the host is above the configured limits.

    A limit of 0 disables that check; with both at 0 ``throttle`` is a no-op.
    """

    max_cpu_percent: float = 0.0
    max_ram_percent: float = 0.0
    sleep_seconds: float = 0.5
    max_throttle_seconds: float = 5.0
    min_check_interval_seconds: float = 1.0
    _last_check: float = field(default=0.0, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.enabled:
            psutil.cpu_percent(interval=None)

    @property
    def enabled(self) -> bool:
        return self.max_cpu_percent > 0 or self.max_ram_percent > 0

    def throttle(self) -> float:
        """Wait while usage is over the limits. Returns the seconds spent waiting."""
        if not self.enabled:
            return 0.0
        now = time.monotonic()
        if (now - self._last_check) < self.min_check_interval_seconds:
            return 0.0
        self._last_check = now
        while self.over_limit():
            waited = time.monotonic() - now
            if waited >= self.max_throttle_seconds:
                return waited
            time.sleep(self.sleep_seconds)
        return time.monotonic() - now

    def over_limit(self) -> bool:
        cpu_over = self.max_cpu_percent > 0 and psutil.cpu_percent(interval=0.1) > self.max_cpu_percent
        ram_over = self.max_ram_percent > 0 and psutil.virtual_memory().percent > self.max_ram_percent
        return cpu_over or ram_over
