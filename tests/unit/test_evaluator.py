"""
Unit tests for the threshold evaluator.

Tests cover:
- Non-strict rate boundary
- Break-even trigger and the no-savings guard
- Combined decision and reason text
- Metrics snapshot
"""

from decimal import Decimal

from ratewatch.services.evaluation import evaluate


class TestRateTrigger:
    """Benchmark-rate condition."""

    def test_equal_rate_triggers(self, rate_only_profile):
        """Equality triggers (<=)."""
        result = evaluate(rate_only_profile, Decimal("5.5"))

        assert result.triggered is True
        assert result.triggered_by_rate is True
        assert result.triggered_reason == (
            "The 30-year benchmark rate (5.500%) dropped to or below "
            "your threshold of 5.500%."
        )

    def test_just_above_threshold_does_not_trigger(self, rate_only_profile):
        result = evaluate(rate_only_profile, Decimal("5.501"))

        assert result.triggered is False
        assert result.triggered_reason is None

    def test_float_rate_equal_to_threshold_triggers(self, rate_only_profile):
        rate_only_profile.benchmark_rate_threshold = Decimal("5.7")

        result = evaluate(rate_only_profile, 5.7)

        assert result.triggered is True
        assert result.metrics.benchmark_rate == Decimal("5.7")

    def test_above_threshold(self, rate_only_profile):
        result = evaluate(rate_only_profile, Decimal("5.6"))

        assert result.triggered is False

    def test_no_loan_parameters_means_no_loan_metrics(self, rate_only_profile):
        result = evaluate(rate_only_profile, Decimal("5.6"))

        assert result.metrics.has_loan_estimate is False
        assert result.metrics.break_even_months is None
        assert result.metrics.estimated_new_rate == Decimal("5.6")

    def test_unset_rate_threshold_never_triggers(self, loan_profile):
        """Rate condition needs its threshold."""
        loan_profile.break_even_months_threshold = 1
        result = evaluate(loan_profile, Decimal("0.5"))

        assert result.triggered_by_rate is False


class TestBreakEvenTrigger:
    """Break-even condition."""

    def test_scenario_triggers_within_24_months(self, loan_profile):
        """300k at 6.5% over 300 months, benchmark 5.0, 2% closing costs."""
        result = evaluate(loan_profile, Decimal("5.0"))

        metrics = result.metrics
        assert metrics.monthly_savings > 0
        assert metrics.closing_costs == Decimal("6000")
        assert metrics.break_even_months == 23
        assert result.triggered is True
        assert result.triggered_by_break_even is True
        assert result.triggered_by_rate is False
        assert result.triggered_reason == (
            "Your estimated break-even period (23 months) is at or below "
            "your threshold of 24 months."
        )

    def test_threshold_below_break_even(self, loan_profile):
        loan_profile.break_even_months_threshold = 22
        result = evaluate(loan_profile, Decimal("5.0"))

        assert result.metrics.break_even_months == 23
        assert result.triggered is False

    def test_no_savings_never_triggers(self, loan_profile):
        """Benchmark above current rate: no savings, no division."""
        loan_profile.break_even_months_threshold = 600
        result = evaluate(loan_profile, Decimal("7.0"))

        assert result.metrics.monthly_savings < 0
        assert result.metrics.break_even_months is None
        assert result.metrics.total_savings_over_term == Decimal("0")
        assert result.triggered is False

    def test_equal_rates_never_trigger(self, loan_profile):
        loan_profile.break_even_months_threshold = 600
        result = evaluate(loan_profile, Decimal("6.5"))

        assert result.metrics.monthly_savings == Decimal("0")
        assert result.metrics.break_even_months is None
        assert result.triggered is False

    def test_total_savings_over_term(self, loan_profile):
        result = evaluate(loan_profile, Decimal("5.0"))
        metrics = result.metrics

        expected = metrics.monthly_savings * 300 - metrics.closing_costs
        assert metrics.total_savings_over_term == expected


class TestCombinedDecision:
    """Both conditions."""

    def test_both_clauses_in_reason(self, loan_profile):
        loan_profile.benchmark_rate_threshold = Decimal("5.25")
        result = evaluate(loan_profile, Decimal("5.0"))

        assert result.triggered_by_rate is True
        assert result.triggered_by_break_even is True
        assert result.triggered_reason == (
            "The 30-year benchmark rate (5.000%) dropped to or below your threshold "
            "of 5.250%. Additionally, Your estimated break-even period (23 months) "
            "is at or below your threshold of 24 months."
        )

    def test_rate_alone_is_sufficient(self, loan_profile):
        loan_profile.benchmark_rate_threshold = Decimal("5.25")
        loan_profile.break_even_months_threshold = 6
        result = evaluate(loan_profile, Decimal("5.0"))

        assert result.triggered is True
        assert result.triggered_by_break_even is False
        assert "Additionally" not in result.triggered_reason


class TestMetricsSnapshot:
    """JSON-safe metrics."""

    def test_to_dict_uses_strings(self, loan_profile):
        snapshot = evaluate(loan_profile, Decimal("5.0")).metrics.to_dict()

        assert snapshot["benchmark_rate"] == "5.0000"
        assert snapshot["current_rate"] == "6.5000"
        assert snapshot["closing_costs"] == "6000.00"
        assert snapshot["break_even_months"] == 23
        assert isinstance(snapshot["monthly_savings"], str)

    def test_to_dict_without_loan(self, rate_only_profile):
        snapshot = evaluate(rate_only_profile, Decimal("5.6")).metrics.to_dict()

        assert snapshot["monthly_savings"] is None
        assert snapshot["break_even_months"] is None
