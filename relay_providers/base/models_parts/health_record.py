"""
Health bookkeeping for one registered provider.

Updated by the health monitor's periodic probes and by the manager's own
failure accounting after every call.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthRecord:
    """Mutable health state (guarded by the owning provider state's lock).

    Attributes:
        status: Current classification.
        last_check_time: Clock value of the last probe or call outcome.
        consecutive_failures: Failures since the last success.
        last_error_kind: Kind of the most recent failure, if any.
    """

    status: HealthStatus = HealthStatus.HEALTHY
    last_check_time: Optional[float] = None
    consecutive_failures: int = 0
    last_error_kind: Optional[str] = None

    def record_success(self, now: float) -> None:
        self.consecutive_failures = 0
        self.last_check_time = now

    def record_failure(self, now: float, kind: Optional[str], threshold: int) -> None:
        self.consecutive_failures += 1
        self.last_check_time = now
        self.last_error_kind = kind
        if self.consecutive_failures >= threshold:
            self.status = HealthStatus.UNHEALTHY

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "last_check_time": self.last_check_time,
            "consecutive_failures": self.consecutive_failures,
            "last_error_kind": self.last_error_kind,
        }


__all__ = ["HealthStatus", "HealthRecord"]
