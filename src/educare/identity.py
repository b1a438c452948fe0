import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

import bcrypt
from jose import JWTError, jwt
from pydantic import BaseModel, Field

from .errors import AuthError, UnauthorizedError
from .kv_store import KeyValueStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


class Account(BaseModel):
    id: str
    email: str
    password_hash: str
    user_metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


# --- Service Layer: Identity Provider ---
class IdentityProvider:
    """Owns credentials and access tokens.

    Accounts live beside the profiles in the key-value store but under their
    own ``auth:`` keys; profile handlers never read them directly.
    """

    def __init__(
        self,
        store: KeyValueStore,
        secret: str,
        algorithm: str = "HS256",
        expire_minutes: int = 60,
    ):
        self.store = store
        self.secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @staticmethod
    def _account_key(user_id: str) -> str:
        return f"auth:user:{user_id}"

    @staticmethod
    def _email_key(email: str) -> str:
        return f"auth:email:{email}"

    @staticmethod
    def _normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    def _load(self, user_id: str) -> Optional[Account]:
        data = self.store.get(self._account_key(user_id))
        return Account.model_validate(data) if data else None

    def _save(self, account: Account) -> None:
        self.store.set(self._account_key(account.id), account.model_dump(mode="json"))

    @staticmethod
    def _hash(password: str) -> str:
        return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    @staticmethod
    def _check(password: str, password_hash: str) -> bool:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))

    @staticmethod
    def _validate_password(password: str):
        if not password or len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters"
            )

    def create_user(
        self, email: str, password: str, user_metadata: Optional[Dict[str, Any]] = None
    ) -> Account:
        email = self._normalize_email(email)
        if "@" not in email:
            raise AuthError("Unable to validate email address: invalid format")
        self._validate_password(password)
        if self.store.get(self._email_key(email)):
            raise AuthError("A user with this email address has already been registered")

        account = Account(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=self._hash(password),
            user_metadata=user_metadata or {},
            created_at=datetime.now(timezone.utc),
        )
        self._save(account)
        self.store.set(self._email_key(email), account.id)
        logger.info(f"Created account {account.id}")
        return account

    def issue_token(self, account: Account) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": account.id,
            "email": account.email,
            "iat": int(now.timestamp()),
            "exp": int((now + timedelta(minutes=self.expire_minutes)).timestamp()),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def sign_in_with_password(self, email: str, password: str) -> Tuple[Account, str]:
        user_id = self.store.get(self._email_key(self._normalize_email(email)))
        account = self._load(user_id) if user_id else None
        if not account or not password or not self._check(password, account.password_hash):
            raise AuthError("Invalid login credentials")
        return account, self.issue_token(account)

    def get_user(self, token: Optional[str]) -> Account:
        if not token:
            raise UnauthorizedError()
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except JWTError as exc:
            logger.warning(f"Rejected token: {exc}")
            raise UnauthorizedError() from exc

        account = self._load(payload.get("sub", ""))
        if not account:
            raise UnauthorizedError()
        return account

    def update_password(self, user_id: str, new_password: str) -> Account:
        account = self._load(user_id)
        if not account:
            raise AuthError("User not found")
        self._validate_password(new_password)
        account.password_hash = self._hash(new_password)
        self._save(account)
        return account

    def delete_user(self, user_id: str) -> None:
        account = self._load(user_id)
        if not account:
            raise AuthError("User not found")
        self.store.mdelete([self._account_key(user_id), self._email_key(account.email)])
        logger.info(f"Deleted account {user_id}")
