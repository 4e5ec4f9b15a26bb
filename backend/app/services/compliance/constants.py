"""Named constants for the compliance-check package.

Centralizes all magic numbers so they can be tuned from one place.
"""

# ---------------------------------------------------------------------------
# Content limits (characters)
# ---------------------------------------------------------------------------
MODEL_CONTENT_LIMIT = 12_000  # User content sent to the model backend
FALLBACK_EXCERPT_LENGTH = 4_000  # Raw page text used when no section matches
MIN_EXTRACTED_LENGTH = 100  # Extracted website text below this is a failure
MIN_CONTENT_LENGTH = 50  # Normalized text below this is rejected

TRUNCATION_MARKER = "\n\n[...текст обрезан...]"

# ---------------------------------------------------------------------------
# Section windows (characters around the first keyword hit)
# ---------------------------------------------------------------------------
SECTION_WINDOW_BEFORE = 300
OFFER_WINDOW_AFTER = 3_000
PRIVACY_WINDOW_AFTER = 3_000
RETURNS_WINDOW_AFTER = 1_500

# ---------------------------------------------------------------------------
# Website fetching
# ---------------------------------------------------------------------------
DEFAULT_SCHEME = "https"
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_FETCH_TIMEOUT_SECONDS = 15.0
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0.0.0 Safari/537.36"
)

# ---------------------------------------------------------------------------
# Asynchronous job polling
# ---------------------------------------------------------------------------
POLL_INTERVAL_SECONDS = 1.0
POLL_MAX_ATTEMPTS = 60
