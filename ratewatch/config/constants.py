"""
Static constants for the rate watch service.

Series metadata, provider sentinels, validation ranges and
notification limits.
"""

from decimal import Decimal

# =============================================================================
# RATE SERIES
# =============================================================================

# Optimal Blue 30-Year Fixed Rate Conforming Mortgage Index (via FRED)
DEFAULT_RATE_SERIES = "OBMMIC30YF"
RATE_SERIES_NAME = "Optimal Blue 30-Year Fixed Rate Conforming Mortgage Index"
RATE_DATA_SOURCE = "Federal Reserve Economic Data (FRED)"
RATE_UPDATE_CADENCE = "Daily (weekdays)"

FRED_OBSERVATIONS_URL = "https://api.stlouisfed.org/fred/series/observations"

# FRED returns "." for an observation with no value
FRED_MISSING_VALUE = "."

# Default look-back for rate history when the user has no session
RATE_HISTORY_DEFAULT_DAYS = 30


# =============================================================================
# EVALUATION
# =============================================================================

# Closing costs when the profile specifies neither dollars nor percent
DEFAULT_CLOSING_COST_PERCENT = Decimal("2")

MONTHS_PER_YEAR = 12


# =============================================================================
# PROFILE VALIDATION RANGES
# =============================================================================

MIN_RATE_PERCENT = Decimal("0.1")
MAX_RATE_PERCENT = Decimal("20")

MIN_BREAK_EVEN_MONTHS = 1
MAX_BREAK_EVEN_MONTHS = 600

MIN_TERM_MONTHS = 1
MAX_TERM_MONTHS = 600

MAX_CLOSING_COST_PERCENT = Decimal("20")


# =============================================================================
# NOTIFICATIONS
# =============================================================================

RESEND_API_URL = "https://api.resend.com/emails"

ALERT_DEDUPE_KEY_PREFIX = "alert"

# Max length of the trigger reason stored on a notification event
BODY_PREVIEW_LENGTH = 200

ALERT_EMAIL_SUBJECT = "Rate Watch: Benchmark Rate Hit Your Target!"
TEST_EMAIL_SUBJECT = "Rate Watch - Test Email"
