"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_LIST_LIMIT = 200
DUE_SOON_DAYS = 7
MAX_VALIDITY_YEARS = 100
ADULT_AGE_YEARS = 18
AUTO_ARCHIVE_REASON = "Auto-archived at 18"
MANUAL_ARCHIVE_REASON = "Manual archive"

PUBLIC_ID_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
PUBLIC_ID_LENGTH = 6
TEEN_PUBLIC_ID_PREFIX = "T"

# Reserved keys inside a submission's data map.
VARS_KEY = "__vars__"
OTHER_SUFFIX = "__other"
OTHER_SENTINEL = "__other__"
