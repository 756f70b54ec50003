"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_LIST_LIMIT = 200

# Risk categories (inclusive lower bounds)
HIGH_RISK_MIN_SCORE = 60
MEDIUM_RISK_MIN_SCORE = 30

# Calendar
CALENDAR_MODIFIER_MIN = -50
CALENDAR_MODIFIER_MAX = 50
DEFAULT_UPCOMING_DAYS = 30
DEFAULT_UPCOMING_RESTRICTION_DAYS = 14
DEFAULT_SUGGEST_FLEXIBILITY_DAYS = 7

# Patterns
PATTERN_SAMPLE_SIZE = 20
BACK_TO_BACK_GAP_DAYS = 3

DEFAULT_CURFEW_TIME = "22:00"
DASHBOARD_HIGH_RISK_SAMPLE = 10
