import base64
import logging
from typing import Optional, Tuple

from .errors import AuthError, NotFoundError
from .identity import Account, IdentityProvider
from .kv_store import KeyValueStore
from .models import (
    ActivityResult,
    ActivityScoreRequest,
    ChangePasswordRequest,
    CompleteProfileRequest,
    LoginRequest,
    QuizResult,
    SignupRequest,
    SubmitQuizRequest,
    UserProfile,
)

logger = logging.getLogger(__name__)


def profile_key(user_id: str) -> str:
    return f"user:{user_id}"


def quiz_history_prefix(user_id: str) -> str:
    return f"userquiz:{user_id}:"


# --- Service Layer: Profiles ---
class ProfileService:
    """Profile reads and writes on behalf of an authenticated caller.

    Every mutation is read, shallow-merge, write of the whole record with no
    version check, so two concurrent writes for one user are last-writer-wins.
    """

    def __init__(self, store: KeyValueStore, identity: IdentityProvider):
        self.store = store
        self.identity = identity

    def _load(self, user_id: str) -> UserProfile:
        data = self.store.get(profile_key(user_id))
        if not data:
            raise NotFoundError("User profile not found")
        return UserProfile.model_validate(data)

    def _save(self, profile: UserProfile) -> UserProfile:
        self.store.set(profile_key(profile.id), profile.to_wire())
        return profile

    def _caller(self, token: Optional[str]) -> Account:
        return self.identity.get_user(token)

    def signup(self, request: SignupRequest) -> UserProfile:
        account = self.identity.create_user(
            request.email, request.password, user_metadata={"name": request.name}
        )
        profile = UserProfile(id=account.id, name=request.name, email=account.email)
        logger.info(f"Signup: {account.id}")
        return self._save(profile)

    def login(self, request: LoginRequest) -> Tuple[str, UserProfile]:
        account, token = self.identity.sign_in_with_password(
            request.email, request.password
        )
        return token, self._load(account.id)

    def get_profile(self, user_id: str) -> UserProfile:
        return self._load(user_id)

    def complete_profile(
        self, token: Optional[str], request: CompleteProfileRequest
    ) -> UserProfile:
        caller = self._caller(token)
        profile = self._load(caller.id)
        updated = profile.model_copy(
            update={
                "avatar": request.avatar,
                "age": request.age,
                "dob": request.dob,
                "profile_completed": True,
            }
        )
        return self._save(updated)

    def submit_quiz(self, token: Optional[str], request: SubmitQuizRequest) -> UserProfile:
        caller = self._caller(token)
        profile = self._load(caller.id)
        result = QuizResult(
            category=request.category,
            score=request.score,
            total_questions=request.total_questions,
            difficulty=request.difficulty,
        )
        updated = profile.model_copy(
            update={
                "total_points": profile.total_points + request.score,
                "quizzes_taken": [*profile.quizzes_taken, result],
            }
        )
        logger.info(
            f"Quiz submitted by {caller.id} [Category: {request.category}, Score: {request.score}]"
        )
        return self._save(updated)

    def save_activity_score(
        self, token: Optional[str], request: ActivityScoreRequest
    ) -> UserProfile:
        caller = self._caller(token)
        profile = self._load(caller.id)
        result = ActivityResult(
            activity_type=request.activity_type,
            activity_name=request.activity_name,
            score=request.score,
        )
        updated = profile.model_copy(
            update={
                "total_points": profile.total_points + request.score,
                "activities": [*profile.activities, result],
            }
        )
        logger.info(
            f"Activity saved by {caller.id} [{request.activity_type}: {request.activity_name}, Score: {request.score}]"
        )
        return self._save(updated)

    def update_profile(
        self,
        token: Optional[str],
        name: Optional[str] = None,
        photo: Optional[bytes] = None,
        photo_type: Optional[str] = None,
    ) -> UserProfile:
        caller = self._caller(token)
        profile = self._load(caller.id)

        photo_url = profile.photo_url
        if photo:
            encoded = base64.b64encode(photo).decode("ascii")
            photo_url = f"data:{photo_type or 'application/octet-stream'};base64,{encoded}"

        updated = profile.model_copy(
            update={"name": name or profile.name, "photo_url": photo_url}
        )
        return self._save(updated)

    def change_password(self, token: Optional[str], request: ChangePasswordRequest):
        caller = self._caller(token)
        profile = self._load(caller.id)
        try:
            self.identity.sign_in_with_password(profile.email, request.current_password)
        except AuthError as exc:
            raise AuthError("Current password is incorrect") from exc
        self.identity.update_password(caller.id, request.new_password)
        logger.info(f"Password changed for {caller.id}")

    def delete_account(self, token: Optional[str]):
        caller = self._caller(token)
        self.store.delete(profile_key(caller.id))
        self.store.mdelete(self.store.keys_by_prefix(quiz_history_prefix(caller.id)))
        self.identity.delete_user(caller.id)
        logger.info(f"Deleted profile {caller.id}")
