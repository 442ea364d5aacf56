"""
Email templates.

Alert and test emails, HTML and plain text.
"""

from dataclasses import dataclass
from decimal import Decimal
from html import escape

from ratewatch.config.constants import (
    ALERT_EMAIL_SUBJECT,
    RATE_SERIES_NAME,
    TEST_EMAIL_SUBJECT,
)
from ratewatch.utils.formatters import format_money, format_rate

_FOOTER = "Rate Watch - Mortgage Rate Monitoring"
_DATA_SOURCE = f"Data source: {RATE_SERIES_NAME} (FRED)"

_BODY_STYLE = (
    "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; "
    "line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;"
)
_ROW_STYLE = "padding: 8px 0; border-bottom: 1px solid #eee;"


@dataclass(frozen=True)
class AlertEmailData:
    """Values quoted in an alert email."""

    user_name: str
    current_rate: Decimal
    benchmark_rate: Decimal
    benchmark_rate_threshold: Decimal | None
    triggered_reason: str
    dashboard_url: str
    break_even_months: int | None = None
    monthly_savings: Decimal | None = None


def _row(label: str, value: str, last: bool = False) -> str:
    style = "padding: 8px 0;" if last else _ROW_STYLE
    return (
        f'<tr><td style="{style}">{label}</td>'
        f'<td style="{style} text-align: right; font-weight: bold;">{value}</td></tr>'
    )


def render_alert_email(data: AlertEmailData) -> tuple[str, str, str]:
    """
    Render the trigger alert.

    Returns:
        Tuple of (subject, html, text)
    """
    rows = [
        ("Your Current Rate", format_rate(data.current_rate)),
        ("Current Benchmark Rate", format_rate(data.benchmark_rate)),
    ]
    if data.benchmark_rate_threshold is not None:
        rows.append(("Your Threshold", format_rate(data.benchmark_rate_threshold)))
    if data.break_even_months is not None:
        rows.append(("Estimated Break-even", f"{data.break_even_months} months"))
    if data.monthly_savings is not None and data.monthly_savings > 0:
        rows.append(("Estimated Monthly Savings", format_money(data.monthly_savings)))

    table = "".join(
        _row(label, value, last=index == len(rows) - 1)
        for index, (label, value) in enumerate(rows)
    )
    name = escape(data.user_name)
    reason = escape(data.triggered_reason)
    dashboard = escape(data.dashboard_url, quote=True)

    html = f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Rate Alert</title>
</head>
<body style="{_BODY_STYLE}">
  <h1 style="font-size: 24px;">Rate Alert!</h1>
  <p>Hi {name},</p>
  <p>Good news! The benchmark mortgage rate has dropped to a level you were watching.</p>
  <p>{reason}</p>
  <table style="width: 100%; border-collapse: collapse;">{table}</table>
  <p>This might be a good time to explore refinancing options with lenders.</p>
  <p style="font-size: 14px;"><strong>Note:</strong> This is a benchmark rate. Actual rates
  will vary by lender and your credit profile.</p>
  <p style="font-size: 14px; color: #666;">You can adjust your threshold or pause monitoring
  in your <a href="{dashboard}">dashboard</a>.</p>
  <p style="font-size: 12px; color: #999;">{_FOOTER}<br>{_DATA_SOURCE}</p>
</body>
</html>
"""

    text_rows = "\n".join(f"- {label}: {value}" for label, value in rows)
    text = f"""Rate Alert!

Hi {data.user_name},

Good news! The benchmark mortgage rate has dropped to a level you were watching.

{data.triggered_reason}

Rate Update:
{text_rows}

This might be a good time to explore refinancing options with lenders.

Note: This is a benchmark rate. Actual rates will vary by lender and your credit profile.

Dashboard: {data.dashboard_url}

---
{_FOOTER}
{_DATA_SOURCE}
"""
    return ALERT_EMAIL_SUBJECT, html, text


def render_test_email(user_name: str) -> tuple[str, str, str]:
    """
    Render the configuration test email.

    Returns:
        Tuple of (subject, html, text)
    """
    name = escape(user_name)
    html = f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"></head>
<body style="{_BODY_STYLE}">
  <h1 style="font-size: 24px;">Test Email</h1>
  <p>Hi {name},</p>
  <p>This is a test email from Rate Watch. If you're seeing this, your email
  configuration is working correctly!</p>
  <p style="font-size: 14px; color: #666;">You'll receive alerts at this email address
  when the benchmark rate hits your threshold.</p>
  <p style="font-size: 12px; color: #999;">{_FOOTER}</p>
</body>
</html>
"""
    text = f"""Test Email

Hi {user_name},

This is a test email from Rate Watch. If you're seeing this, your email configuration is working correctly!

You'll receive alerts at this email address when the benchmark rate hits your threshold.

---
{_FOOTER}
"""
    return TEST_EMAIL_SUBJECT, html, text
