"""Threshold evaluation (pure, no I/O)."""

from ratewatch.services.evaluation.evaluator import (
    EvaluationResult,
    RefinanceMetrics,
    ThresholdSettings,
    evaluate,
)

__all__ = [
    "EvaluationResult",
    "RefinanceMetrics",
    "ThresholdSettings",
    "evaluate",
]
