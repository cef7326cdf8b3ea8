"""Centralized constants for the reprise application.

Property keys, scheduling defaults and algorithm parameters live here so every
layer imports from a single source of truth.
"""

# ---------- Item property keys ----------
# These names are persisted in the vault; renaming them breaks existing decks.
CARD_TYPE_PROPERTY = "card-type"
CARD_LAST_INTERVAL_PROPERTY = "card-last-interval"
CARD_REPEATS_PROPERTY = "card-repeats"
CARD_LAST_REVIEWED_PROPERTY = "card-last-reviewed"
CARD_NEXT_SCHEDULE_PROPERTY = "card-next-schedule"
CARD_EASE_FACTOR_PROPERTY = "card-ease-factor"
CARD_LAST_SCORE_PROPERTY = "card-last-score"

SCHEDULING_PROPERTIES = (
    CARD_LAST_INTERVAL_PROPERTY,
    CARD_REPEATS_PROPERTY,
    CARD_EASE_FACTOR_PROPERTY,
    CARD_NEXT_SCHEDULE_PROPERTY,
    CARD_LAST_REVIEWED_PROPERTY,
    CARD_LAST_SCORE_PROPERTY,
)

# ---------- Scheduling defaults ----------
DEFAULT_LAST_INTERVAL = -1  # sentinel: never scheduled / reset
DEFAULT_REPETITIONS = 0
DEFAULT_EASINESS_FACTOR = 2.5

# ---------- SM-5 parameters ----------
MIN_EASINESS_FACTOR = 1.3
INITIAL_OPTIMAL_FACTOR = 4.0
# Any number between 0 and 1; larger values move the OF matrix faster.
LEARNING_FRACTION = 0.5
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3

# ---------- Session ----------
SKIP = "skip"
HINT_QUALITIES = (3, 4, 5)
SUMMARY_ORDER = (5, 4, 3, 2, 1, 0, SKIP)

# ---------- Vault ----------
CARD_ID_PREFIX = "rp_"
NODE_ID_SEPARATOR = "/"
# Keys on a card mapping that describe the node itself rather than its properties.
NODE_STRUCTURE_KEYS = ("id", "content", "children")
CLOZE_PLACEHOLDER = "[...]"
