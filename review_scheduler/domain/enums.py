from enum import Enum, IntEnum


class Quality(IntEnum):
    BLACKOUT = 0
    INCORRECT = 1
    INCORRECT_FAMILIAR = 2
    CORRECT_DIFFICULT = 3
    CORRECT_HESITANT = 4
    PERFECT = 5


QUALITY_LABELS = {
    Quality.BLACKOUT: "complete blackout",
    Quality.INCORRECT: "incorrect, answer recognised",
    Quality.INCORRECT_FAMILIAR: "incorrect, remembered with difficulty",
    Quality.CORRECT_DIFFICULT: "correct with serious difficulty",
    Quality.CORRECT_HESITANT: "correct after hesitation",
    Quality.PERFECT: "perfect response",
}


class Difficulty(str, Enum):
    EASY = "easy"
    HARD = "hard"

    def __str__(self):
        return self.value


class Priority(str, Enum):
    OVERDUE = "overdue"
    DUE = "due"
    UPCOMING = "upcoming"

    def __str__(self):
        return self.value


PRIORITY_ORDER = {
    Priority.OVERDUE: 0,
    Priority.DUE: 1,
    Priority.UPCOMING: 2,
}


class CardClass(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    MASTERED = "mastered"
