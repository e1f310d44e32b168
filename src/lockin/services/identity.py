"""Local email/password identity provider."""

from __future__ import annotations

import logging
import re
import uuid
from collections import defaultdict
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from lockin.core import security
from lockin.core.errors import (
    EmailInUse,
    InvalidEmail,
    MissingCredentials,
    TooManyRequests,
    TransientStorageError,
    UserNotFound,
    WeakPassword,
    WrongPassword,
)
from lockin.db.session import SessionLocal
from lockin.models import UserAccount
from lockin.services.documents import DocumentStore, user_path
from lockin.utils.dates import Clock, local_now

logger = logging.getLogger(__name__)

AuthCallback = Callable[[str | None], None]

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class IdentityProvider:
    """Signs users up and in and tells listeners who is signed in.

    Only one user is signed in at a time on a device. Repeated wrong
    passwords for the same email lock that email out for a while.
    """

    def __init__(
        self,
        store: DocumentStore,
        session_factory: sessionmaker[Session] | None = None,
        *,
        clock: Clock = local_now,
        min_password_length: int = 6,
        max_failed_attempts: int = 5,
        lockout: timedelta = timedelta(minutes=5),
    ) -> None:
        self._store = store
        self._session_factory = session_factory or SessionLocal
        self._clock = clock
        self.min_password_length = min_password_length
        self.max_failed_attempts = max_failed_attempts
        self.lockout = lockout
        self._failures: dict[str, list[datetime]] = defaultdict(list)
        self._listeners: list[AuthCallback] = []
        self.current_user: str | None = None

    @staticmethod
    def _normalize(email: str) -> str:
        return email.strip().lower()

    def _require(self, email: str, password: str) -> str:
        if not email or not password:
            raise MissingCredentials()
        normalized = self._normalize(email)
        if not EMAIL_PATTERN.match(normalized):
            raise InvalidEmail()
        return normalized

    async def sign_up(self, email: str, password: str) -> str:
        """Create an account, sign it in and return its user id."""
        normalized = self._require(email, password)
        if len(password) < self.min_password_length:
            raise WeakPassword(
                f"Password must be at least {self.min_password_length} characters long"
            )

        user_id = uuid.uuid4().hex
        account = UserAccount(
            user_id=user_id,
            email=normalized,
            password_hash=security.hash_password(password),
        )
        db = self._session_factory()
        try:
            if db.execute(
                select(UserAccount.user_id).where(UserAccount.email == normalized)
            ).first() is not None:
                raise EmailInUse()
            db.add(account)
            db.commit()
        except IntegrityError as err:
            db.rollback()
            raise EmailInUse() from err
        except SQLAlchemyError as err:
            db.rollback()
            raise TransientStorageError(f"Could not create account: {err}") from err
        finally:
            db.close()
        logger.info("User created successfully: %s", normalized)

        try:
            await self._store.set(
                user_path(user_id),
                {"email": normalized, "createdAt": self._clock().isoformat()},
            )
        except TransientStorageError as err:
            logger.error("Error initializing user data for %s: %s", user_id, err)

        self._set_current(user_id)
        return user_id

    async def sign_in(self, email: str, password: str) -> str:
        """Check credentials, sign the user in and return its user id."""
        normalized = self._require(email, password)
        now = self._clock()
        recent = [at for at in self._failures[normalized] if now - at < self.lockout]
        self._failures[normalized] = recent
        if len(recent) >= self.max_failed_attempts:
            raise TooManyRequests()

        db = self._session_factory()
        try:
            account = db.execute(
                select(UserAccount).where(UserAccount.email == normalized)
            ).scalar_one_or_none()
        except SQLAlchemyError as err:
            raise TransientStorageError(f"Could not read account: {err}") from err
        finally:
            db.close()

        if account is None:
            raise UserNotFound()
        if not security.verify_password(password, account.password_hash):
            self._failures[normalized].append(now)
            logger.info("Wrong password for %s", normalized)
            raise WrongPassword()

        self._failures.pop(normalized, None)
        logger.info("User signed in successfully: %s", normalized)
        self._set_current(account.user_id)
        return account.user_id

    def sign_out(self) -> None:
        if self.current_user is None:
            return
        logger.info("User %s signed out", self.current_user)
        self._set_current(None)

    def on_auth_change(self, callback: AuthCallback) -> Callable[[], None]:
        """Subscribe to sign-in changes.

        The callback fires right away with the current user and again after
        every change. Returns a function that removes the subscription.
        """
        self._listeners.append(callback)
        callback(self.current_user)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    def _set_current(self, user_id: str | None) -> None:
        self.current_user = user_id
        for listener in list(self._listeners):
            listener(user_id)
