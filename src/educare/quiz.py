import logging
import os
import random
from abc import ABC, abstractmethod
from typing import List, Optional

import pandas as pd

from .kv_store import KeyValueStore
from .models import POINTS_BY_DIFFICULTY, Difficulty, QuizQuestion

logger = logging.getLogger(__name__)

QUESTIONS_FILE = os.path.join(os.path.dirname(__file__), "data", "quiz_questions.csv")

ALL_CATEGORIES = "all"
CATEGORIES = [
    "alphabet",
    "numbers",
    "fruits",
    "animals",
    "vegetables",
    "twoLetterWords",
    "threeLetterWords",
]


def load_question_set(path: str = QUESTIONS_FILE) -> List[QuizQuestion]:
    """Reads the fixed question set; points follow the difficulty tier."""
    df = pd.read_csv(path, encoding="utf-8", dtype=str, keep_default_na=False)
    option_columns = [c for c in df.columns if c.startswith("option_")]
    questions = []
    for row in df.to_dict("records"):
        difficulty = Difficulty(row["difficulty"])
        questions.append(
            QuizQuestion(
                id=row["id"],
                category=row["category"],
                difficulty=difficulty,
                points=POINTS_BY_DIFFICULTY[difficulty],
                question=row["question"],
                options=[row[c] for c in option_columns if row[c]],
                correct_answer=row["correct_answer"],
            )
        )
    return questions


# --- Storage: Question Bank ---
class QuestionBank:
    """Quiz questions stored one per key, ``quiz:{id}``."""

    KEY_PREFIX = "quiz:"

    def __init__(self, store: KeyValueStore):
        self.store = store

    def seed(self, questions: List[QuizQuestion]) -> int:
        # Keyed by id, so re-seeding overwrites instead of duplicating.
        self.store.mset(
            {f"{self.KEY_PREFIX}{q.id}": q.to_wire() for q in questions}
        )
        logger.info(f"Seeded {len(questions)} quiz questions")
        return len(questions)

    def all(self) -> List[QuizQuestion]:
        return [
            QuizQuestion.model_validate(data)
            for data in self.store.get_by_prefix(self.KEY_PREFIX)
        ]


# --- Strategy Pattern: Quiz Generators ---
class QuizGenerator(ABC):
    """Abstract Base Class for question selection strategies."""

    @abstractmethod
    def generate(self, category: str, count: int) -> List[QuizQuestion]:
        pass


class RandomQuizGenerator(QuizGenerator):
    """Filters by category, shuffles, truncates.

    No balancing by difficulty and no memory of previously seen questions.
    """

    def __init__(self, bank: QuestionBank, rng: Optional[random.Random] = None):
        self.bank = bank
        self.rng = rng or random.Random()

    def generate(self, category: str, count: int) -> List[QuizQuestion]:
        questions = [
            q
            for q in self.bank.all()
            if category == ALL_CATEGORIES or q.category == category
        ]
        self.rng.shuffle(questions)
        return questions[: max(count, 0)]
