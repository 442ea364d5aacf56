"""
Threshold profile validators.

Field validators return a tuple of (is_valid, parsed_value, error_message);
an empty value is valid and parses to None. validate_profile_input collects
every field error and raises ProfileValidationError.
"""

import re
from collections.abc import Mapping
from dataclasses import asdict, dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from ratewatch.config.constants import (
    MAX_BREAK_EVEN_MONTHS,
    MAX_CLOSING_COST_PERCENT,
    MAX_RATE_PERCENT,
    MAX_TERM_MONTHS,
    MIN_BREAK_EVEN_MONTHS,
    MIN_RATE_PERCENT,
    MIN_TERM_MONTHS,
)
from ratewatch.utils.exceptions import ProfileValidationError

_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


@dataclass(frozen=True)
class ProfileInput:
    """Validated threshold profile fields."""

    current_rate: Decimal
    benchmark_rate_threshold: Decimal | None = None
    break_even_months_threshold: int | None = None
    email_alerts_enabled: bool = True
    loan_balance: Decimal | None = None
    remaining_term_months: int | None = None
    closing_cost_dollars: Decimal | None = None
    closing_cost_percent: Decimal | None = None

    def to_fields(self) -> dict[str, Any]:
        """Column values for ThresholdProfileRepository.upsert."""
        return asdict(self)


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_decimal(value: Any) -> Decimal | None:
    if isinstance(value, bool):
        return None
    try:
        parsed = Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def validate_rate(
    value: Any,
    label: str,
    min_val: Decimal = MIN_RATE_PERCENT,
    max_val: Decimal = MAX_RATE_PERCENT,
) -> tuple[bool, Decimal | None, str | None]:
    """
    Validate a whole-percent rate.

    Examples:
        >>> validate_rate("6.5", "Current rate")
        (True, Decimal('6.5'), None)
        >>> validate_rate("25", "Current rate")
        (False, None, "Current rate must be between 0.1 and 20")
    """
    if _is_empty(value):
        return True, None, None

    rate = _parse_decimal(value)
    if rate is None:
        return False, None, f"{label} must be a number"

    if rate < min_val or rate > max_val:
        return False, None, f"{label} must be between {min_val} and {max_val}"

    return True, rate, None


def validate_months(
    value: Any,
    label: str,
    min_val: int,
    max_val: int,
) -> tuple[bool, int | None, str | None]:
    """Validate a whole number of months in [min_val, max_val]."""
    if _is_empty(value):
        return True, None, None

    number = _parse_decimal(value)
    if number is None or number != number.to_integral_value():
        return False, None, f"{label} must be a whole number of months"

    months = int(number)
    if months < min_val or months > max_val:
        return False, None, f"{label} must be between {min_val} and {max_val} months"

    return True, months, None


def validate_money(value: Any, label: str) -> tuple[bool, Decimal | None, str | None]:
    """Validate a non-negative dollar amount."""
    if _is_empty(value):
        return True, None, None

    amount = _parse_decimal(value)
    if amount is None:
        return False, None, f"{label} must be a number"

    if amount < 0:
        return False, None, f"{label} cannot be negative"

    if amount.as_tuple().exponent < -2:
        return False, None, f"{label} has too many decimal places (maximum 2)"

    return True, amount, None


def validate_email(email: str) -> tuple[bool, str | None]:
    """
    Validate an alert address.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not email or not isinstance(email, str) or not email.strip():
        return False, "Email is empty"

    email = email.strip()
    if len(email) > 320:
        return False, "Email is too long (maximum 320 characters)"
    if not _EMAIL_PATTERN.match(email):
        return False, "Invalid email format"

    return True, None


def validate_profile_input(data: Mapping[str, Any]) -> ProfileInput:
    """
    Validate submitted onboarding or settings values.

    Args:
        data: Raw field values (strings or numbers); empty means unset

    Returns:
        ProfileInput

    Raises:
        ProfileValidationError: With one message per failed check
    """
    errors: list[str] = []

    def collect(result: tuple[bool, Any, str | None]) -> Any:
        is_valid, parsed, error = result
        if not is_valid:
            errors.append(error or "Invalid value")
        return parsed

    current_rate = collect(validate_rate(data.get("current_rate"), "Current rate"))
    if current_rate is None and _is_empty(data.get("current_rate")):
        errors.append("Current rate is required")

    rate_threshold = collect(
        validate_rate(data.get("benchmark_rate_threshold"), "Benchmark rate threshold")
    )
    months_threshold = collect(
        validate_months(
            data.get("break_even_months_threshold"),
            "Break-even threshold",
            MIN_BREAK_EVEN_MONTHS,
            MAX_BREAK_EVEN_MONTHS,
        )
    )
    loan_balance = collect(validate_money(data.get("loan_balance"), "Loan balance"))
    term_months = collect(
        validate_months(
            data.get("remaining_term_months"),
            "Remaining term",
            MIN_TERM_MONTHS,
            MAX_TERM_MONTHS,
        )
    )
    closing_dollars = collect(
        validate_money(data.get("closing_cost_dollars"), "Closing costs")
    )
    closing_percent = collect(
        validate_rate(
            data.get("closing_cost_percent"),
            "Closing cost percent",
            min_val=Decimal("0"),
            max_val=MAX_CLOSING_COST_PERCENT,
        )
    )

    if _is_empty(data.get("benchmark_rate_threshold")) and _is_empty(
        data.get("break_even_months_threshold")
    ):
        errors.append("At least one threshold must be set")

    if months_threshold is not None and (not loan_balance or term_months is None):
        errors.append("Break-even threshold requires loan balance and remaining term")

    if errors:
        raise ProfileValidationError(errors)

    email_alerts = data.get("email_alerts_enabled", True)
    if isinstance(email_alerts, str):
        email_alerts = email_alerts.strip().lower() in ("1", "true", "yes", "on")

    return ProfileInput(
        current_rate=current_rate,
        benchmark_rate_threshold=rate_threshold,
        break_even_months_threshold=months_threshold,
        email_alerts_enabled=bool(email_alerts),
        loan_balance=loan_balance,
        remaining_term_months=term_months,
        closing_cost_dollars=closing_dollars,
        closing_cost_percent=closing_percent,
    )
