"""
Response quality heuristics.

Scores are on a 0-100 scale: a base of 50, +20 past 10 characters, +20 past
100 characters and +10 when the reply contains neither "error" nor "sorry".
The adapter compares ``score / 100`` against its quality threshold.
"""
from __future__ import annotations


def score_response_quality(text: str) -> int:
    score = 50
    if len(text) > 10:
        score += 20
    if len(text) > 100:
        score += 20
    lowered = text.lower()
    if "error" not in lowered and "sorry" not in lowered:
        score += 10
    return min(score, 100)


__all__ = ["score_response_quality"]
