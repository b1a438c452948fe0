from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


POINTS_BY_DIFFICULTY: Dict[Difficulty, int] = {
    Difficulty.EASY: 50,
    Difficulty.MEDIUM: 75,
    Difficulty.HARD: 100,
}


# --- Models ---
class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class QuizQuestion(CamelModel):
    id: str
    category: str
    difficulty: Difficulty
    points: int
    question: str
    options: List[str]
    correct_answer: str

    @model_validator(mode="after")
    def _answer_is_an_option(self):
        if self.correct_answer not in self.options:
            raise ValueError(
                f"Question {self.id}: correct answer {self.correct_answer!r} is not an option"
            )
        return self


class QuizResult(CamelModel):
    category: str
    score: int
    total_questions: int
    difficulty: str
    date: datetime = Field(default_factory=utcnow)


class ActivityResult(CamelModel):
    activity_type: str
    activity_name: str
    score: int
    date: datetime = Field(default_factory=utcnow)


class UserProfile(CamelModel):
    id: str
    name: str
    email: str
    avatar: Optional[str] = None
    age: Optional[int] = None
    dob: Optional[str] = None
    photo_url: Optional[str] = None
    profile_completed: bool = False
    courses_completed: int = 0
    total_points: int = 0
    quizzes_taken: List[QuizResult] = Field(default_factory=list)
    activities: List[ActivityResult] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


# --- Request bodies ---
class SignupRequest(CamelModel):
    name: str
    email: str
    password: str


class LoginRequest(CamelModel):
    email: str
    password: str


class CompleteProfileRequest(CamelModel):
    avatar: Optional[str] = None
    age: Optional[int] = None
    dob: Optional[str] = None


class SubmitQuizRequest(CamelModel):
    category: str
    score: int
    total_questions: int
    difficulty: str = "mixed"


class ActivityScoreRequest(CamelModel):
    activity_type: str
    activity_name: str
    score: int


class ChangePasswordRequest(CamelModel):
    current_password: str
    new_password: str
