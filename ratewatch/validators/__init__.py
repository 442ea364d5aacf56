"""
Validators package.

Validation of user-submitted thresholds at the settings boundary.
"""

from ratewatch.validators.profile import (
    ProfileInput,
    validate_email,
    validate_months,
    validate_money,
    validate_profile_input,
    validate_rate,
)


__all__ = [
    "ProfileInput",
    "validate_email",
    "validate_months",
    "validate_money",
    "validate_profile_input",
    "validate_rate",
]
