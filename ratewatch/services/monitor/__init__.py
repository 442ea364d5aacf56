"""
Monitor session services.
"""

from ratewatch.services.monitor.batch import BatchEvaluationRunner, BatchResult
from ratewatch.services.monitor.lifecycle import (
    CycleOutcome,
    EvaluationCycleResult,
    SessionLifecycleManager,
)
from ratewatch.services.monitor.status import MonitorStatus, MonitorStatusService

__all__ = [
    "BatchEvaluationRunner",
    "BatchResult",
    "CycleOutcome",
    "EvaluationCycleResult",
    "MonitorStatus",
    "MonitorStatusService",
    "SessionLifecycleManager",
]
