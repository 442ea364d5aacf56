"""
Business services.

The monitoring core: rate fetching and storage, threshold evaluation,
notification and the session lifecycle.
"""

from ratewatch.services.base_service import BaseService, ServiceResult

__all__ = [
    "BaseService",
    "ServiceResult",
]
