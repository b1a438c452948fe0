import logging
from abc import ABC, abstractmethod
from typing import List, Optional

logger = logging.getLogger(__name__)


class SpeechBackend(ABC):
    """Platform text-to-speech engine."""

    @abstractmethod
    def speak(self, text: str, rate: float, pitch: float) -> None:
        pass

    @abstractmethod
    def cancel(self) -> None:
        pass


class LoggingSpeechBackend(SpeechBackend):
    """Stands in for a speech engine on headless hosts."""

    def __init__(self):
        self.spoken: List[str] = []

    def speak(self, text: str, rate: float, pitch: float) -> None:
        self.spoken.append(text)
        logger.debug(f"Speaking ({rate}x, pitch {pitch}): {text}")

    def cancel(self) -> None:
        pass


class Narrator:
    """Single voice; a new phrase cuts off whatever is being spoken."""

    def __init__(
        self,
        backend: Optional[SpeechBackend] = None,
        rate: float = 0.8,
        pitch: float = 1.2,
    ):
        self.backend = backend or LoggingSpeechBackend()
        self.rate = rate
        self.pitch = pitch
        self.last_phrase: Optional[str] = None

    def say(self, text: str) -> None:
        self.backend.cancel()
        self.backend.speak(text, self.rate, self.pitch)
        self.last_phrase = text

    def spell(self, word: str, meaning: str = "") -> None:
        """Letters one by one, then the word, then its meaning."""
        phrase = f"{'. '.join(word)}. {word}."
        if meaning:
            phrase = f"{phrase} {meaning}"
        self.say(phrase)
