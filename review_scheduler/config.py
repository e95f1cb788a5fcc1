DEFAULT_EASINESS_FACTOR = 2.5
MIN_EASINESS_FACTOR = 1.3
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3          # below this a review is a lapse

FIRST_INTERVAL_DAYS = 1
SECOND_INTERVAL_DAYS = 6
LAPSE_INTERVAL_DAYS = 1

FAST_RESPONSE_MS = 3000      # "easy" answers quicker than this are perfect
QUALITY_FOR = {
    "easy_fast": 5,
    "easy": 4,
    "hard": 2,
}

MASTERED_INTERVAL_DAYS = 21  # 3+ weeks between reviews

# (upper bound of total due, batch size); None means pass total through
BATCH_TIERS = (
    (10, None),
    (50, 15),
    (100, 20),
)
MAX_BATCH_SIZE = 25
