"""
Keyword and length heuristics describing what a request asks for.

The profile drives model choice and temperature adaptation in the vendor
adapters. It is deliberately cheap: a handful of regular expressions over the
lower-cased prompt and message.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

Complexity = Literal["low", "medium", "high"]

_DEEP_REASONING = re.compile(r"complex|analyze|research|philosophy|ethical|reasoning")
_CREATIVE = re.compile(r"creative|story|poem|write|imagine|generate")
_CODE = re.compile(r"code|programming|function|debug|algorithm|script")
_ANALYSIS = re.compile(r"data|chart|analyze|compare|evaluate|statistics")
_VISION = re.compile(r"image|picture|photo|visual|diagram|chart")
_SIMPLE = re.compile(r"hello|hi|simple|quick|basic")
_THOROUGH = re.compile(r"detailed|comprehensive|thorough")

COMPLEX_LENGTH = 2000
HIGH_LENGTH = 1000
MEDIUM_LENGTH = 300


@dataclass(frozen=True)
class TaskProfile:
    requires_deep_reasoning: bool = False
    is_creative: bool = False
    is_code: bool = False
    requires_analysis: bool = False
    requires_vision: bool = False
    is_simple: bool = False
    is_complex: bool = False
    complexity: Complexity = "low"

    @property
    def kind(self) -> str:
        """Dominant task kind, used for temperature adaptation and logging."""
        if self.is_creative:
            return "creative"
        if self.is_code:
            return "code"
        if self.requires_analysis:
            return "analysis"
        return "general"


def analyze_task(system_prompt: str, user_message: str, has_images: bool = False) -> TaskProfile:
    text = f"{system_prompt} {user_message}".lower()
    length = len(text)
    if length > HIGH_LENGTH:
        complexity: Complexity = "high"
    elif length > MEDIUM_LENGTH:
        complexity = "medium"
    else:
        complexity = "low"
    return TaskProfile(
        requires_deep_reasoning=bool(_DEEP_REASONING.search(text)),
        is_creative=bool(_CREATIVE.search(text)),
        is_code=bool(_CODE.search(text)),
        requires_analysis=bool(_ANALYSIS.search(text)),
        requires_vision=has_images or bool(_VISION.search(text)),
        is_simple=bool(_SIMPLE.search(text)),
        is_complex=length > COMPLEX_LENGTH or bool(_THOROUGH.search(text)),
        complexity=complexity,
    )


def adapt_temperature(base: float, profile: TaskProfile, shifts: dict) -> float:
    """Shift ``base`` by the delta configured for the profile's kind, clamped to [0, 1]."""
    shift = shifts.get(profile.kind, 0.0)
    if not shift:
        return base
    return round(min(1.0, max(0.0, base + shift)), 4)


__all__ = ["TaskProfile", "Complexity", "analyze_task", "adapt_temperature"]
