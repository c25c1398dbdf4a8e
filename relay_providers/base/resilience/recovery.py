"""Data-driven recovery table.

Each recoverable error kind maps to exactly one action, attempted once per
call by the adapter. Kinds absent from the table surface unchanged.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from ..errors import ErrorKind


class RecoveryAction(str, Enum):
    CHEAPER_MODEL = "cheaper_model"
    COMPRESS_CONTEXT = "compress_context"
    FALLBACK_MODEL = "fallback_model"
    BACKOFF_RETRY = "backoff_retry"


RECOVERY_TABLE: Dict[ErrorKind, RecoveryAction] = {
    ErrorKind.QUOTA: RecoveryAction.CHEAPER_MODEL,
    ErrorKind.CONTEXT_LENGTH: RecoveryAction.COMPRESS_CONTEXT,
    ErrorKind.MODEL_NOT_FOUND: RecoveryAction.FALLBACK_MODEL,
    ErrorKind.RATE_LIMIT: RecoveryAction.BACKOFF_RETRY,
    ErrorKind.NETWORK: RecoveryAction.BACKOFF_RETRY,
    ErrorKind.TIMEOUT: RecoveryAction.BACKOFF_RETRY,
    ErrorKind.SERVICE: RecoveryAction.BACKOFF_RETRY,
}


def recovery_for(kind: ErrorKind) -> Optional[RecoveryAction]:
    return RECOVERY_TABLE.get(kind)


__all__ = ["RecoveryAction", "RECOVERY_TABLE", "recovery_for"]
