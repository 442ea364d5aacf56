"""
Threshold evaluator.

Pure decision function: given a user's thresholds and a benchmark rate,
compute refinance metrics and decide whether an alert should fire.

Two conditions are checked and either alone is sufficient:
- benchmark rate at or below the rate threshold
- estimated break-even period at or below the months threshold
  (only when loan balance and term are known)
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol

from ratewatch.services.evaluation.amortization import (
    ZERO,
    break_even_months,
    closing_costs,
    monthly_payment,
)
from ratewatch.utils.formatters import format_rate

_MONEY_PLACES = Decimal("0.01")
_RATE_PLACES = Decimal("0.0001")


def to_decimal(value: Decimal | float | int | str) -> Decimal:
    """Decimal from a number via its str form (5.7 -> Decimal('5.7'))."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class ThresholdSettings(Protocol):
    """Profile fields read by the evaluator (ThresholdProfile satisfies it)."""

    current_rate: Decimal
    benchmark_rate_threshold: Decimal | None
    break_even_months_threshold: int | None
    loan_balance: Decimal | None
    remaining_term_months: int | None
    closing_cost_dollars: Decimal | None
    closing_cost_percent: Decimal | None


@dataclass(frozen=True)
class RefinanceMetrics:
    """
    Metrics computed for one evaluation.

    Loan-derived fields are None when the profile has no loan parameters.
    """

    benchmark_rate: Decimal
    current_rate: Decimal
    estimated_new_rate: Decimal
    current_monthly_payment: Decimal | None = None
    estimated_new_monthly_payment: Decimal | None = None
    monthly_savings: Decimal | None = None
    closing_costs: Decimal | None = None
    break_even_months: int | None = None
    total_savings_over_term: Decimal | None = None

    @property
    def has_loan_estimate(self) -> bool:
        """True if the amortization model was applied."""
        return self.monthly_savings is not None

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe snapshot (Decimals as strings) for evaluation runs."""

        def money(value: Decimal | None) -> str | None:
            return None if value is None else str(value.quantize(_MONEY_PLACES))

        return {
            "benchmark_rate": str(self.benchmark_rate.quantize(_RATE_PLACES)),
            "current_rate": str(self.current_rate.quantize(_RATE_PLACES)),
            "estimated_new_rate": str(self.estimated_new_rate.quantize(_RATE_PLACES)),
            "current_monthly_payment": money(self.current_monthly_payment),
            "estimated_new_monthly_payment": money(self.estimated_new_monthly_payment),
            "monthly_savings": money(self.monthly_savings),
            "closing_costs": money(self.closing_costs),
            "break_even_months": self.break_even_months,
            "total_savings_over_term": money(self.total_savings_over_term),
        }


@dataclass(frozen=True)
class EvaluationResult:
    """Trigger decision with the metrics it was based on."""

    triggered: bool
    metrics: RefinanceMetrics
    triggered_reason: str | None
    triggered_by_rate: bool = False
    triggered_by_break_even: bool = False


def _has_loan_parameters(profile: ThresholdSettings) -> bool:
    return (
        profile.loan_balance is not None
        and profile.loan_balance > 0
        and profile.remaining_term_months is not None
        and profile.remaining_term_months > 0
    )


def calculate_metrics(profile: ThresholdSettings, benchmark_rate: Decimal) -> RefinanceMetrics:
    """
    Calculate refinance metrics; the benchmark rate stands in for the new rate.
    """
    benchmark_rate = to_decimal(benchmark_rate)
    current_rate = to_decimal(profile.current_rate)
    if not _has_loan_parameters(profile):
        return RefinanceMetrics(
            benchmark_rate=benchmark_rate,
            current_rate=current_rate,
            estimated_new_rate=benchmark_rate,
        )

    balance = to_decimal(profile.loan_balance)
    term = int(profile.remaining_term_months)

    current_payment = monthly_payment(balance, current_rate, term)
    new_payment = monthly_payment(balance, benchmark_rate, term)
    savings = current_payment - new_payment
    costs = closing_costs(balance, profile.closing_cost_dollars, profile.closing_cost_percent)

    total_savings = savings * term - costs if savings > 0 else ZERO

    return RefinanceMetrics(
        benchmark_rate=benchmark_rate,
        current_rate=current_rate,
        estimated_new_rate=benchmark_rate,
        current_monthly_payment=current_payment,
        estimated_new_monthly_payment=new_payment,
        monthly_savings=savings,
        closing_costs=costs,
        break_even_months=break_even_months(costs, savings),
        total_savings_over_term=total_savings,
    )


def evaluate(profile: ThresholdSettings, benchmark_rate: Decimal) -> EvaluationResult:
    """
    Decide whether the profile's thresholds are met by the benchmark rate.

    Args:
        profile: Threshold settings (whole-percent rates)
        benchmark_rate: Latest benchmark rate in whole percent

    Returns:
        EvaluationResult with a reason clause per satisfied condition
    """
    benchmark_rate = to_decimal(benchmark_rate)
    metrics = calculate_metrics(profile, benchmark_rate)

    rate_threshold = profile.benchmark_rate_threshold
    months_threshold = profile.break_even_months_threshold

    by_rate = rate_threshold is not None and benchmark_rate <= to_decimal(rate_threshold)
    by_break_even = (
        months_threshold is not None
        and metrics.break_even_months is not None
        and metrics.break_even_months <= months_threshold
    )

    reasons: list[str] = []
    if by_rate:
        reasons.append(
            f"The 30-year benchmark rate ({format_rate(benchmark_rate)}) dropped to or "
            f"below your threshold of {format_rate(rate_threshold)}"
        )
    if by_break_even:
        reasons.append(
            f"Your estimated break-even period ({metrics.break_even_months} months) is at "
            f"or below your threshold of {months_threshold} months"
        )

    return EvaluationResult(
        triggered=by_rate or by_break_even,
        metrics=metrics,
        triggered_reason=". Additionally, ".join(reasons) + "." if reasons else None,
        triggered_by_rate=by_rate,
        triggered_by_break_even=by_break_even,
    )
