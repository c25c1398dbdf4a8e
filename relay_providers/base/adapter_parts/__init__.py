"""Building blocks of the adapter contract: state bundle and request heuristics."""

from .adapter_state import AdapterState
from .quality import score_response_quality
from .task_profile import TaskProfile, analyze_task, adapt_temperature
from .text_tools import estimate_tokens, truncate_middle, compress_to_window, shrink_for_retry

__all__ = [
    "AdapterState",
    "score_response_quality",
    "TaskProfile",
    "analyze_task",
    "adapt_temperature",
    "estimate_tokens",
    "truncate_middle",
    "compress_to_window",
    "shrink_for_retry",
]
