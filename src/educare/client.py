import asyncio
import json
import logging
import os
import random
from enum import Enum
from typing import Any, Dict, Optional, Set

import httpx

from .config import settings
from .games import Activity, MemoryMatch
from .models import QuizQuestion, UserProfile
from .quiz_session import QuizSession
from .speech import Narrator

logger = logging.getLogger(__name__)

TOKEN_KEY = "educare_access_token"
USER_ID_KEY = "educare_user_id"
QUIZ_SEEDED_KEY = "quiz_data_initialized"


class Screen(str, Enum):
    SPLASH = "splash"
    AUTH = "auth"
    PROFILE_CREATION = "profileCreation"
    HOME = "home"
    ALPHABET = "alphabet"
    NUMBERS = "numbers"
    FRUITS = "fruits"
    ANIMALS = "animals"
    VEGETABLES = "vegetables"
    VIDEOS = "videos"
    PROFILE = "profile"
    QUIZ = "quiz"
    ACCOUNT_SETTINGS = "accountSettings"
    HELP_SUPPORT = "helpSupport"
    STORIES = "stories"
    POETRY = "poetry"
    SHAPES = "shapes"
    NUMBER_SPELLING = "numberSpelling"
    PUZZLES = "puzzles"
    MUSIC_RHYTHM = "musicRhythm"
    GAMES = "games"
    TWO_LETTER_WORDS = "twoLetterWords"
    THREE_LETTER_WORDS = "threeLetterWords"


class ApiError(Exception):
    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


# --- API Client ---
class ApiClient:
    """Thin async wrapper over the HTTP API.

    No retries. Timeouts are those of the injected ``httpx.AsyncClient``
    (httpx defaults to 5 s; pass ``timeout=None`` to wait indefinitely).
    """

    def __init__(self, http: httpx.AsyncClient, prefix: str = settings.API_PREFIX):
        self.http = http
        self.prefix = prefix

    async def _request(
        self, method: str, path: str, token: Optional[str] = None, **kwargs
    ) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        response = await self.http.request(
            method, f"{self.prefix}{path}", headers=headers, **kwargs
        )
        try:
            data = response.json()
        except ValueError:
            data = {}
        if response.is_error:
            raise ApiError(response.status_code, data.get("error") or response.reason_phrase)
        return data

    async def signup(self, name: str, email: str, password: str) -> UserProfile:
        data = await self._request(
            "POST", "/signup", json={"name": name, "email": email, "password": password}
        )
        return UserProfile.model_validate(data["user"])

    async def login(self, email: str, password: str):
        data = await self._request(
            "POST", "/login", json={"email": email, "password": password}
        )
        return data["accessToken"], UserProfile.model_validate(data["user"])

    async def complete_profile(
        self, token: str, avatar: str, age: int, dob: str
    ) -> UserProfile:
        data = await self._request(
            "POST",
            "/complete-profile",
            token=token,
            json={"avatar": avatar, "age": age, "dob": dob},
        )
        return UserProfile.model_validate(data["user"])

    async def get_profile(self, user_id: str) -> UserProfile:
        data = await self._request("GET", f"/profile/{user_id}")
        return UserProfile.model_validate(data["user"])

    async def quiz_questions(self, category: str, count: int = settings.QUIZ_SIZE):
        data = await self._request(
            "GET", "/quiz-questions", params={"category": category, "count": count}
        )
        return data["questions"]

    async def init_quiz_data(self) -> str:
        data = await self._request("POST", "/init-quiz-data")
        return data["message"]

    async def submit_quiz(
        self,
        token: str,
        category: str,
        score: int,
        total_questions: int,
        difficulty: str = "mixed",
    ) -> UserProfile:
        data = await self._request(
            "POST",
            "/submit-quiz",
            token=token,
            json={
                "category": category,
                "score": score,
                "totalQuestions": total_questions,
                "difficulty": difficulty,
            },
        )
        return UserProfile.model_validate(data["user"])

    async def save_activity_score(
        self, token: str, activity_type: str, activity_name: str, score: int
    ) -> UserProfile:
        data = await self._request(
            "POST",
            "/save-activity-score",
            token=token,
            json={
                "activityType": activity_type,
                "activityName": activity_name,
                "score": score,
            },
        )
        return UserProfile.model_validate(data["user"])

    async def update_profile(
        self,
        token: str,
        name: Optional[str] = None,
        photo: Optional[bytes] = None,
        photo_type: str = "image/png",
    ) -> UserProfile:
        form = {"name": name} if name else {}
        files = {"photo": ("photo", photo, photo_type)} if photo else None
        data = await self._request(
            "POST", "/update-profile", token=token, data=form, files=files
        )
        return UserProfile.model_validate(data["user"])

    async def change_password(
        self, token: str, current_password: str, new_password: str
    ) -> str:
        data = await self._request(
            "POST",
            "/change-password",
            token=token,
            json={"currentPassword": current_password, "newPassword": new_password},
        )
        return data["message"]

    async def delete_account(self, token: str) -> str:
        data = await self._request("DELETE", "/delete-account", token=token)
        return data["message"]


# --- Durable Storage ---
class LocalStorage:
    """String key-value pairs persisted to a JSON file."""

    def __init__(self, path: str):
        self.path = path
        self.data: Dict[str, str] = {}
        if os.path.exists(path):
            with open(path, encoding="utf-8") as f:
                self.data = json.load(f)

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str):
        self.data[key] = value
        self._flush()

    def remove(self, key: str):
        if self.data.pop(key, None) is not None:
            self._flush()

    def _flush(self):
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(self.data, f)


# --- Application State ---
class EducareApp:
    """Client state: current screen, user snapshot, token, current activity.

    Score submissions run as background tasks kept in ``pending``; the UI
    never waits on them and their failures are only logged.
    """

    def __init__(
        self,
        api: ApiClient,
        storage: LocalStorage,
        narrator: Optional[Narrator] = None,
        rng: Optional[random.Random] = None,
    ):
        self.api = api
        self.storage = storage
        self.narrator = narrator or Narrator()
        self.rng = rng or random.Random()
        self.screen = Screen.SPLASH
        self.user: Optional[UserProfile] = None
        self.access_token: Optional[str] = None
        self.activity: Optional[Any] = None
        self.pending: Set[asyncio.Task] = set()

    # --- Navigation ---
    def navigate(self, screen: Screen):
        self.screen = Screen(screen)
        self.activity = None

    def leave_splash(self):
        if not self.user:
            self.screen = Screen.AUTH

    # --- Session ---
    async def restore_session(self) -> bool:
        token = self.storage.get(TOKEN_KEY)
        user_id = self.storage.get(USER_ID_KEY)
        if not (token and user_id):
            return False
        try:
            self.user = await self.api.get_profile(user_id)
        except (ApiError, httpx.HTTPError) as e:
            logger.error(f"Error restoring session: {e}")
            self.storage.remove(TOKEN_KEY)
            self.storage.remove(USER_ID_KEY)
            return False
        self.access_token = token
        self.screen = Screen.HOME
        return True

    async def init_quiz_data(self) -> bool:
        if self.storage.get(QUIZ_SEEDED_KEY):
            return False
        try:
            message = await self.api.init_quiz_data()
        except (ApiError, httpx.HTTPError) as e:
            logger.error(f"Error initializing quiz data: {e}")
            return False
        self.storage.set(QUIZ_SEEDED_KEY, "true")
        logger.info(message)
        return True

    def _start_session(self, token: str, user: UserProfile):
        self.access_token = token
        self.user = user
        self.storage.set(TOKEN_KEY, token)
        self.storage.set(USER_ID_KEY, user.id)
        self.screen = Screen.HOME if user.profile_completed else Screen.PROFILE_CREATION

    async def login(self, email: str, password: str) -> UserProfile:
        token, user = await self.api.login(email, password)
        self._start_session(token, user)
        return user

    async def signup(self, name: str, email: str, password: str) -> UserProfile:
        await self.api.signup(name, email, password)
        # Signing straight in gives profile completion a token to use.
        return await self.login(email, password)

    async def complete_profile(self, avatar: str, age: int, dob: str) -> UserProfile:
        self.user = await self.api.complete_profile(self.access_token, avatar, age, dob)
        return self.user

    def logout(self):
        self.storage.remove(TOKEN_KEY)
        self.storage.remove(USER_ID_KEY)
        self.user = None
        self.access_token = None
        self.navigate(Screen.AUTH)

    # --- Account Settings ---
    async def update_profile(
        self,
        name: Optional[str] = None,
        photo: Optional[bytes] = None,
        photo_type: str = "image/png",
    ) -> UserProfile:
        self.user = await self.api.update_profile(
            self.access_token, name=name, photo=photo, photo_type=photo_type
        )
        return self.user

    async def change_password(self, current_password: str, new_password: str) -> str:
        return await self.api.change_password(
            self.access_token, current_password, new_password
        )

    async def delete_account(self) -> str:
        message = await self.api.delete_account(self.access_token)
        self.logout()
        return message

    def update_points(self, points: int):
        if self.user:
            self.user = self.user.model_copy(
                update={"total_points": self.user.total_points + points}
            )

    # --- Quiz ---
    async def start_quiz(self, category: str) -> QuizSession:
        try:
            raw = await self.api.quiz_questions(category)
        except (ApiError, httpx.HTTPError) as e:
            logger.error(f"Error fetching quiz questions: {e}")
            self.narrator.say("Sorry, there was an error loading the quiz. Please try again.")
            raw = []
        session = QuizSession(
            category, [QuizQuestion.model_validate(q) for q in raw], narrator=self.narrator
        )
        self.screen = Screen.QUIZ
        self.activity = session
        self.narrator.say("Let's start the quiz! Good luck!")
        return session

    async def answer(
        self,
        session: QuizSession,
        option: str,
        delay: float = settings.FEEDBACK_SECONDS,
    ) -> Optional[bool]:
        """Selects and submits ``option``, holds the feedback, then advances."""
        if not session.select(option):
            return None
        is_correct = session.submit()
        await asyncio.sleep(delay)
        session.advance()
        return is_correct

    def finish_quiz(self, session: QuizSession) -> Optional[asyncio.Task]:
        """Credits the points locally and reports them in the background."""
        points = session.total_points
        self.update_points(points)
        if not self.access_token:
            return None
        return self._spawn(
            self.api.submit_quiz(
                self.access_token, session.category, points, session.total_questions
            ),
            "submitting quiz results",
        )

    # --- Activities ---
    def start_activity(self, activity_cls, *args) -> Activity:
        activity = activity_cls(*args, rng=self.rng)
        self.activity = activity
        return activity

    async def reveal_pair(
        self,
        game: MemoryMatch,
        first: int,
        second: int,
        delay: float = settings.REVEAL_SECONDS,
    ) -> Optional[bool]:
        """Turns two cards face up and settles them after the reveal delay.

        Nothing is flipped unless both cards can be, so a bad pair leaves
        the board as it was.
        """
        if first == second or game.flipped:
            return None
        if not (game.can_flip(first) and game.can_flip(second)):
            return None
        game.flip(first)
        game.flip(second)
        await asyncio.sleep(delay)
        is_match = game.resolve()
        if game.completed:
            self.record_activity(game)
        return is_match

    def record_activity(self, activity: Activity) -> Optional[asyncio.Task]:
        if not activity.score:
            return None
        self.update_points(activity.score)
        if not (self.user and self.access_token):
            return None
        return self._spawn(
            self.api.save_activity_score(
                self.access_token,
                activity.activity_type,
                activity.activity_name,
                activity.score,
            ),
            f"saving {activity.activity_type} score",
        )

    def _spawn(self, call, action: str) -> asyncio.Task:
        async def run() -> Optional[UserProfile]:
            try:
                profile = await call
            except (ApiError, httpx.HTTPError) as e:
                logger.error(f"Error {action}: {e}")
                return None
            if self.user and self.user.id == profile.id:
                self.user = profile
            return profile

        task = asyncio.create_task(run())
        self.pending.add(task)
        task.add_done_callback(self.pending.discard)
        return task

    async def drain(self):
        """Waits for every background submission still in flight."""
        if self.pending:
            await asyncio.gather(*list(self.pending))
