"""Confidence scoring utilities.

Every verification result carries a numeric confidence (0.0--1.0) and a
qualitative level.  This module provides the shared building blocks:

1. **weighted_confidence** -- weighted sum of per-source match strengths,
   normalized by the total weight considered (never by less than 1.0, so a
   single low-reliability source cannot claim full confidence).
2. **confidence_to_level** -- maps a score to a :class:`ConfidenceLevel`.
3. **dampen_confidence** -- caps a confidence for outcomes that rest on
   insufficient evidence (uncertain or fail-open verdicts).
"""

from enum import Enum


class ConfidenceLevel(str, Enum):  # noqa: UP042
    """Human-readable confidence tiers.

    Thresholds:
        VERY_HIGH: >= 0.90
        HIGH:      >= 0.75
        MEDIUM:    >= 0.50
        LOW:       >= 0.25
        VERY_LOW:  <  0.25
    """

    VERY_HIGH = "very-high"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    VERY_LOW = "very-low"


def weighted_confidence(
    strengths: list[float],
    weights: list[float],
) -> float:
    """Combine per-source match strengths into one confidence value.

    Args:
        strengths: Match strength per contributing source, each in [0.0, 1.0].
        weights: Reliability weight of each contributing source.

    Returns:
        ``sum(strength * weight) / max(sum(weights), 1.0)`` clamped to
        [0.0, 1.0].

    Raises:
        ValueError: If the two lists differ in length.
    """
    if len(strengths) != len(weights):
        raise ValueError("strengths and weights must have the same length")
    if not strengths:
        return 0.0

    total_weight = sum(weights)
    weighted_sum = sum(s * w for s, w in zip(strengths, weights, strict=True))
    return max(0.0, min(1.0, weighted_sum / max(total_weight, 1.0)))


def confidence_to_level(score: float) -> ConfidenceLevel:
    """Map a numeric confidence score to a qualitative level."""
    if score >= 0.9:
        return ConfidenceLevel.VERY_HIGH
    if score >= 0.75:
        return ConfidenceLevel.HIGH
    if score >= 0.5:
        return ConfidenceLevel.MEDIUM
    if score >= 0.25:
        return ConfidenceLevel.LOW
    return ConfidenceLevel.VERY_LOW


def dampen_confidence(score: float, factor: float = 0.7, ceiling: float = 0.6) -> float:
    """Scale a confidence down and cap it.

    Used when the verdict rests on insufficient evidence: the result is
    ``min(score * factor, ceiling)``, so it never rises above MEDIUM with
    the default ceiling.
    """
    return max(0.0, min(score * factor, ceiling))
