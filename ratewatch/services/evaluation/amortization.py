"""
Amortization math for refinance estimates.

All rates are whole percents (6.5 means 6.5%); money is Decimal.
"""

from decimal import ROUND_CEILING, Decimal

from ratewatch.config.constants import DEFAULT_CLOSING_COST_PERCENT, MONTHS_PER_YEAR

HUNDRED = Decimal("100")
ZERO = Decimal("0")


def monthly_payment(principal: Decimal, annual_rate_pct: Decimal, term_months: int) -> Decimal:
    """
    Calculate the monthly payment with the standard amortization formula.

    PMT = P * r * (1 + r)^n / ((1 + r)^n - 1), r = annual_rate_pct / 100 / 12

    Args:
        principal: Loan balance
        annual_rate_pct: Annual rate in whole percent
        term_months: Number of remaining payments

    Returns:
        Monthly payment; principal / n for a zero rate, 0 for no term
    """
    if term_months <= 0:
        return ZERO
    if annual_rate_pct <= 0:
        return principal / term_months

    monthly_rate = annual_rate_pct / HUNDRED / MONTHS_PER_YEAR
    factor = (1 + monthly_rate) ** term_months
    return principal * monthly_rate * factor / (factor - 1)


def closing_costs(
    loan_balance: Decimal,
    closing_cost_dollars: Decimal | None,
    closing_cost_percent: Decimal | None,
) -> Decimal:
    """
    Resolve closing costs: fixed dollars, else percent of balance, else 2%.
    """
    if closing_cost_dollars is not None and closing_cost_dollars > 0:
        return closing_cost_dollars
    if closing_cost_percent is not None and closing_cost_percent > 0:
        return loan_balance * closing_cost_percent / HUNDRED
    return loan_balance * DEFAULT_CLOSING_COST_PERCENT / HUNDRED


def break_even_months(costs: Decimal, monthly_savings: Decimal) -> int | None:
    """
    Months needed to recoup closing costs.

    Returns:
        ceil(costs / savings), or None when there are no savings (never breaks even)
    """
    if monthly_savings <= 0:
        return None
    return int((costs / monthly_savings).to_integral_value(rounding=ROUND_CEILING))
