import random
from abc import ABC
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

MEMORY_SYMBOLS = ["🍎", "🍌", "🍊", "🍇", "🍓", "🍉"]
PAIR_SYMBOLS = ["🐶", "🐱", "🐭", "🐹", "🐰", "🦊"]
COUNT_SYMBOLS = ["🌟", "🎈", "🎁", "🎨", "🎯"]
COUNT_RANGE: Tuple[int, int] = (3, 10)
COUNT_CHOICES = list(range(1, 13))

MIN_SCORE = 50
COUNT_SCORE = 100


def memory_match_score(moves: int) -> int:
    return max(100 - moves * 5, MIN_SCORE)


def find_pair_score(attempts: int) -> int:
    return max(100 - attempts * 10, MIN_SCORE)


# --- Base ---
class Activity(ABC):
    """A scored activity; ``score`` is set once the round is won."""

    activity_type: str = "game"
    activity_name: str = ""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self.score: Optional[int] = None


# --- Games ---
@dataclass
class Card:
    id: int
    symbol: str
    flipped: bool = False
    matched: bool = False


class MemoryMatch(Activity):
    activity_name = "Memory Match"

    def __init__(
        self, rng: Optional[random.Random] = None, symbols: Optional[List[str]] = None
    ):
        super().__init__(rng)
        self.symbols = list(symbols or MEMORY_SYMBOLS)
        deck = self.symbols * 2
        self.rng.shuffle(deck)
        self.cards = [Card(id=i, symbol=s) for i, s in enumerate(deck)]
        self.flipped: List[int] = []
        self.moves = 0
        self.matches = 0

    @property
    def completed(self) -> bool:
        return self.matches == len(self.symbols)

    @property
    def awaiting_resolution(self) -> bool:
        return len(self.flipped) == 2

    def can_flip(self, card_id: int) -> bool:
        if self.awaiting_resolution or self.completed:
            return False
        card = self.cards[card_id]
        return not (card.flipped or card.matched)

    def flip(self, card_id: int) -> bool:
        if not self.can_flip(card_id):
            return False
        self.cards[card_id].flipped = True
        self.flipped.append(card_id)
        return True

    def resolve(self) -> Optional[bool]:
        """Settles the two face-up cards after the reveal delay."""
        if not self.awaiting_resolution:
            return None
        first, second = (self.cards[i] for i in self.flipped)
        is_match = first.symbol == second.symbol
        if is_match:
            first.matched = second.matched = True
            self.matches += 1
        else:
            first.flipped = second.flipped = False
        self.flipped = []

        if self.completed:
            # Scored on the moves made before this final one.
            self.score = memory_match_score(self.moves)
        self.moves += 1
        return is_match


class FindThePair(Activity):
    activity_name = "Find the Pair"

    def __init__(
        self, rng: Optional[random.Random] = None, symbols: Optional[List[str]] = None
    ):
        super().__init__(rng)
        symbols = list(symbols or PAIR_SYMBOLS)
        self.target = self.rng.choice(symbols)
        self.items = symbols + [self.target]
        self.rng.shuffle(self.items)
        self.attempts = 0
        self.found = False

    def tap(self, symbol: str) -> Optional[bool]:
        if self.found:
            return None
        self.attempts += 1
        if symbol == self.target:
            self.found = True
            self.score = find_pair_score(self.attempts)
        return self.found


class CountTheItems(Activity):
    activity_name = "Count the Items"

    def __init__(self, rng: Optional[random.Random] = None):
        super().__init__(rng)
        self.symbol = self.rng.choice(COUNT_SYMBOLS)
        self.count = self.rng.randint(*COUNT_RANGE)
        self.choices = list(COUNT_CHOICES)
        self.user_answer: Optional[int] = None

    @property
    def answered(self) -> bool:
        return self.user_answer is not None

    def answer(self, number: int) -> Optional[int]:
        """One answer per round: 100 for the exact count, otherwise 0."""
        if self.answered:
            return None
        self.user_answer = number
        points = COUNT_SCORE if number == self.count else 0
        if points:
            self.score = points
        return points


# --- Puzzles ---
@dataclass(frozen=True)
class PuzzleLayout:
    id: int
    name: str
    difficulty: str
    kind: str
    items: Tuple[str, ...]
    correct_order: Tuple[str, ...]

    @property
    def points(self) -> int:
        return 50 if self.difficulty == "easy" else 100


PUZZLES = [
    PuzzleLayout(1, "Number Order", "easy", "sequence", ("1", "2", "3", "4", "5"), ("1", "2", "3", "4", "5")),
    PuzzleLayout(2, "Alphabet Order", "easy", "sequence", ("A", "B", "C", "D", "E"), ("A", "B", "C", "D", "E")),
    PuzzleLayout(3, "Color Match", "medium", "match", ("🔴", "🟡", "🔵", "🟢"), ("🔴", "🔴", "🟡", "🟡")),
    PuzzleLayout(4, "Shape Match", "medium", "match", ("⭐", "❤️", "⭕", "⬛"), ("⭐", "⭐", "❤️", "❤️")),
    PuzzleLayout(5, "Spell CAT", "easy", "spell", ("C", "A", "T"), ("C", "A", "T")),
    PuzzleLayout(6, "Spell DOG", "easy", "spell", ("D", "O", "G"), ("D", "O", "G")),
    PuzzleLayout(7, "Two Letter Word: GO", "easy", "spell", ("G", "O"), ("G", "O")),
    PuzzleLayout(8, "Two Letter Word: IN", "easy", "spell", ("I", "N"), ("I", "N")),
    PuzzleLayout(9, "Spell SUN", "medium", "spell", ("S", "U", "N"), ("S", "U", "N")),
    PuzzleLayout(10, "Spell RUN", "medium", "spell", ("R", "U", "N"), ("R", "U", "N")),
]


class OrderingPuzzle(Activity):
    """Tap the shuffled items back into the right order."""

    activity_type = "puzzle"

    def __init__(self, layout: PuzzleLayout, rng: Optional[random.Random] = None):
        super().__init__(rng)
        self.layout = layout
        self.activity_name = layout.name
        self.shuffled = list(layout.items)
        self.rng.shuffle(self.shuffled)
        self.user_order: List[str] = []
        self.completed = False

    def pick(self, item: str) -> Optional[bool]:
        """None while the order is incomplete, else whether it was right.

        A wrong full order is cleared so the player can retry.
        """
        if self.completed:
            return None
        self.user_order.append(item)
        if len(self.user_order) < len(self.layout.items):
            return None
        if tuple(self.user_order) == self.layout.correct_order:
            self.completed = True
            self.score = self.layout.points
            return True
        self.user_order = []
        return False


# --- Music ---
NOTE_FREQUENCIES: Dict[str, float] = {
    "C": 261.63,
    "D": 293.66,
    "E": 329.63,
    "F": 349.23,
    "G": 392.00,
    "A": 440.00,
    "B": 493.88,
    "C2": 523.25,
}

PATTERN_POINTS = {"easy": 50, "medium": 75, "hard": 100}


@dataclass(frozen=True)
class RhythmTune:
    id: int
    name: str
    pattern: Tuple[str, ...]
    difficulty: str


RHYTHM_PATTERNS = [
    RhythmTune(1, "Simple Beat", ("C", "D", "E"), "easy"),
    RhythmTune(2, "Happy Tune", ("C", "E", "G", "E"), "easy"),
    RhythmTune(3, "Scale Up", ("C", "D", "E", "F", "G"), "medium"),
    RhythmTune(4, "Jump Around", ("C", "E", "C", "G", "E"), "medium"),
    RhythmTune(5, "Complex Rhythm", ("C", "E", "G", "A", "G", "E", "C"), "hard"),
]


class RhythmPattern(Activity):
    """Repeat a note pattern; every correct repetition scores again."""

    activity_type = "music"

    def __init__(self, tune: RhythmTune, rng: Optional[random.Random] = None):
        super().__init__(rng)
        self.tune = tune
        self.activity_name = tune.name
        self.played: List[str] = []

    def play(self, note: str) -> Optional[bool]:
        if note not in NOTE_FREQUENCIES:
            raise ValueError(f"Unknown note: {note}")
        self.played.append(note)
        if len(self.played) < len(self.tune.pattern):
            return None
        is_correct = tuple(self.played) == self.tune.pattern
        # Only the latest repetition counts toward a recorded score.
        self.score = PATTERN_POINTS[self.tune.difficulty] if is_correct else None
        self.played = []
        return is_correct
