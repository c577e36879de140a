"""
SessionStore - stub login/register/logout.

There is no backend. login and register pause for the configured
simulated delay and then accept whatever they are given. Passwords
are never stored.

The pause is an asyncio.sleep: it holds no lock, and nothing in the
core stores runs inside it. Callers composing several store calls
around an awaited login must not assume they are atomic.
"""

import asyncio
from typing import Optional, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field

from finquest.config import AppSettings, get_settings
from finquest.events import EventBus
from finquest.stores.base import PersistentStore

logger = structlog.get_logger(__name__)


class User(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: str = Field(..., min_length=3, max_length=254, pattern=r"^[^@\s]+@[^@\s]+$")
    name: str = Field(..., min_length=1, max_length=200)
    age: Optional[int] = Field(default=None, ge=0, le=150)
    user_type: Optional[str] = Field(default=None, max_length=50)


class Registration(User):
    password: str = Field(..., min_length=1, exclude=True)


class SessionState(BaseModel):
    is_authenticated: bool = False
    user: Optional[User] = None


def display_name_from_email(email: str) -> str:
    local = email.split("@", 1)[0]
    return local.replace(".", " ").replace("_", " ").title() or email


class SessionStore(PersistentStore):
    partition = "auth-storage"

    def __init__(self, bus: EventBus, settings: Optional[AppSettings] = None):
        super().__init__(bus)
        self._state = SessionState()
        self._settings = settings or get_settings().app

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    @property
    def user(self) -> Optional[User]:
        return self._state.user

    async def _simulate_latency(self) -> None:
        delay = self._settings.simulated_delay_seconds
        if delay > 0:
            await asyncio.sleep(delay)

    async def login(self, email: str, password: str) -> User:
        """
        Accept any credentials.

        Raises:
            pydantic.ValidationError: If the email is malformed
        """
        user = User(email=email, name=display_name_from_email(email))
        await self._simulate_latency()
        self._state = SessionState(is_authenticated=True, user=user)
        logger.info("user_logged_in", email=user.email)
        return user

    async def register(self, data: Union[Registration, dict]) -> User:
        registration = data if isinstance(data, Registration) else Registration.model_validate(data)
        user = User(**registration.model_dump())
        await self._simulate_latency()
        self._state = SessionState(is_authenticated=True, user=user)
        logger.info("user_registered", email=user.email)
        return user

    def logout(self) -> None:
        self._state = SessionState()

    def set_user(self, user: Union[User, dict]) -> None:
        self._state = self._state.model_copy(
            update={"user": user if isinstance(user, User) else User.model_validate(user)}
        )

    def snapshot(self) -> dict:
        return self._state.model_dump(mode="json")

    def restore(self, data: dict) -> None:
        self._state = self._load_state(SessionState, data)
