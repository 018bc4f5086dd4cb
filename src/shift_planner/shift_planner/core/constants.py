"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PLANNING_MONTHS = 3
DEFAULT_REQUIRED_CAPACITY = 1
DEFAULT_LIST_LIMIT = 500

# Available staff below required * ratio is a thin buffer.
WARNING_BUFFER_RATIO = 1.5

# More than this many pending requests for one team-day is reported.
MANY_PENDING_THRESHOLD = 2

FULL_DAY_WEIGHT = 1.0
PARTIAL_DAY_WEIGHT = 0.5
FAIRNESS_OUTLIER_RATIO = 0.3
