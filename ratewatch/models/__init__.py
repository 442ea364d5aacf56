"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from ratewatch.models.base import Base
from ratewatch.models.evaluation_run import EvaluationOutcome, EvaluationRun
from ratewatch.models.monitor_session import MonitorSession, MonitorSessionStatus
from ratewatch.models.notification_event import NotificationEvent
from ratewatch.models.rate_observation import RateObservation
from ratewatch.models.threshold_profile import ThresholdProfile
from ratewatch.models.user import User

__all__ = [
    # Base
    "Base",
    # Core Models
    "User",
    "ThresholdProfile",
    "MonitorSession",
    "MonitorSessionStatus",
    # Rates
    "RateObservation",
    # Audit
    "EvaluationRun",
    "EvaluationOutcome",
    "NotificationEvent",
]
