"""Application settings constants."""

from __future__ import annotations

# Seconds a session may stay without other listeners before it is torn down.
# Observed deployments used anything from 10 seconds to 3 minutes.
ALONE_TIMEOUT_SECONDS = 60.0

# Delay before the first watchdog tick after a session is created.
WATCHDOG_GRACE_SECONDS = 10.0

# Interval between watchdog ticks.
WATCHDOG_POLL_SECONDS = 3.0

# Search cache defaults.
SEARCH_CACHE_TTL_SECONDS = 600.0
SEARCH_CACHE_COMPACTION_SECONDS = 30.0
SEARCH_CACHE_SAMPLE_SIZE = 20
SEARCH_CACHE_EXPIRED_RATIO = 0.25
SEARCH_CACHE_MAX_ROUNDS = 4

# Upper bound for a single provider round-trip.
PROVIDER_TIMEOUT_SECONDS = 10.0

# Providers listed by the search command, and how many hits each contributes.
SEARCH_COMMAND_ENGINES = ("youtube", "deezer", "soundcloud")
SEARCH_RESULTS_PER_ENGINE = 3

# Providers queried for alternatives, in order of expected result quality.
ALTERNATIVE_ENGINES = ("deezer", "youtube", "soundcloud")

# Engine used for bare-text play requests.
DEFAULT_SEARCH_ENGINE = "youtube"

# Title guesses below this confidence are never searched.
MIN_GUESS_CONFIDENCE = 0.5
MAX_GUESS_QUERIES = 3

# Number of alternatives listed in the recovery notification.
NOTIFY_TOP_ALTERNATIVES = 3
