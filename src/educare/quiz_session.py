from enum import Enum
from typing import List, Optional

from .config import settings
from .models import QuizQuestion
from .speech import Narrator


class QuestionState(str, Enum):
    UNANSWERED = "unanswered"
    ANSWER_SELECTED = "answer-selected"
    FEEDBACK_SHOWN = "feedback-shown"


class QuizSession:
    """Client-side walk through one fetched set of questions.

    ``select`` -> ``submit`` -> ``advance`` per question. The UI calls
    ``advance`` once the feedback delay has elapsed.
    """

    def __init__(
        self,
        category: str,
        questions: List[QuizQuestion],
        narrator: Optional[Narrator] = None,
        pass_ratio: float = settings.PASS_RATIO,
    ):
        self.category = category
        self.questions = list(questions)
        self.narrator = narrator or Narrator()
        self.pass_ratio = pass_ratio
        self.answers: List[Optional[str]] = [None] * len(self.questions)
        self.current_index = 0
        self.selected: Optional[str] = None
        self.state = QuestionState.UNANSWERED
        self.completed = not self.questions

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[QuizQuestion]:
        if self.completed:
            return None
        return self.questions[self.current_index]

    def select(self, option: str) -> bool:
        """Changes the selection unless the answer is already locked."""
        if self.completed or self.state == QuestionState.FEEDBACK_SHOWN:
            return False
        self.selected = option
        self.state = QuestionState.ANSWER_SELECTED
        return True

    def submit(self) -> Optional[bool]:
        """Locks the selected answer and returns whether it was correct."""
        if self.state != QuestionState.ANSWER_SELECTED:
            return None
        question = self.questions[self.current_index]
        self.answers[self.current_index] = self.selected
        self.state = QuestionState.FEEDBACK_SHOWN

        is_correct = self.selected == question.correct_answer
        if is_correct:
            self.narrator.say("Great job! That's correct!")
        else:
            self.narrator.say("Oops! Try again next time!")
        return is_correct

    def advance(self) -> bool:
        """Moves past the feedback; returns True while questions remain."""
        if self.state != QuestionState.FEEDBACK_SHOWN:
            return not self.completed
        if self.current_index < len(self.questions) - 1:
            self.current_index += 1
            self.selected = None
            self.state = QuestionState.UNANSWERED
            return True

        self.completed = True
        if self.passed:
            self.narrator.say("Wow! You did amazing! You're a superstar!")
        else:
            self.narrator.say("Good try! Keep practicing and you'll do even better!")
        return False

    @property
    def correct_count(self) -> int:
        return sum(
            1
            for answer, question in zip(self.answers, self.questions)
            if answer == question.correct_answer
        )

    @property
    def total_points(self) -> int:
        return sum(
            question.points
            for answer, question in zip(self.answers, self.questions)
            if answer == question.correct_answer
        )

    @property
    def passed(self) -> bool:
        return self.correct_count >= len(self.questions) * self.pass_ratio
