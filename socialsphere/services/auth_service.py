"""Authentication: account credentials, bearer tokens and the identity provider."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..config import MissingSecretError, require_secret
from ..constants import USERS
from ..errors import Conflict, RemoteUnavailable, SocialError, Unauthenticated, ValidationError
from ..models import Account
from ..store import SERVER_TIMESTAMP, Document, DocumentStore
from ..utils.retry import retry_call
from ..utils.validation import validate_signup
from .results import OperationResult, service_operation

logger = logging.getLogger(__name__)

_security = HTTPBearer(auto_error=False)
_pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
DEFAULT_TOKEN_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", "1440"))

AUTH_ERROR_MESSAGES = {
    "email-already-in-use": "This email is already registered",
    "invalid-email": "Invalid email address",
    "weak-password": "Password should be at least 6 characters",
    "user-not-found": "No account found with this email",
    "wrong-password": "Incorrect password",
}


@dataclass(frozen=True, slots=True)
class Principal:
    uid: str
    email: str | None = None
    display_name: str | None = None

    @classmethod
    def from_document(cls, document: Document) -> "Principal":
        return cls(uid=document.id, email=document.get("email"), display_name=document.get("displayName"))


AuthCallback = Callable[[Optional[Principal]], None]


@lru_cache(maxsize=1)
def _get_jwt_secret() -> str:
    try:
        return require_secret("JWT_SECRET_KEY")
    except MissingSecretError as exc:
        raise RuntimeError(str(exc)) from exc


def hash_password(password: str) -> str:
    """Hash a plain-text password."""

    return _pwd_context.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify that ``password`` matches ``hashed_password``."""

    try:
        return _pwd_context.verify(password, hashed_password)
    except ValueError:
        logger.exception("Password verification failed for a malformed hash")
        return False


def create_access_token(subject: str, *, expires_minutes: Optional[int] = None) -> str:
    """Create a signed JWT holding the provided ``subject``."""

    expire_delta = timedelta(minutes=expires_minutes or DEFAULT_TOKEN_MINUTES)
    now = datetime.now(timezone.utc)
    payload = {"sub": subject, "exp": now + expire_delta, "iat": now}
    return jwt.encode(payload, _get_jwt_secret(), algorithm=ALGORITHM)


def decode_access_token(token: str) -> str:
    """Decode and validate a JWT, returning the embedded subject uid."""

    try:
        payload = jwt.decode(token, _get_jwt_secret(), algorithms=[ALGORITHM])
    except JWTError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    subject = payload.get("sub")
    if not subject or not isinstance(subject, str):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")
    return subject


def register_account(
    db: Session,
    store: DocumentStore,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    dob: str | None = None,
    gender: str | None = None,
) -> Principal:
    """Persist credentials plus an empty User document and return the principal."""

    problems = validate_signup(email, password)
    if problems:
        raise ValidationError("; ".join(problems.values()))

    normalized_email = email.strip().lower()
    existing = db.scalar(select(Account).where(Account.email == normalized_email))
    if existing is not None:
        raise Conflict(AUTH_ERROR_MESSAGES["email-already-in-use"])

    display_name = f"{first_name.strip()} {last_name.strip()}".strip()
    account = Account(email=normalized_email, hashed_password=hash_password(password), display_name=display_name)
    try:
        db.add(account)
        db.commit()
        db.refresh(account)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to register account")
        raise RemoteUnavailable("Unable to register user") from exc

    uid = str(account.uid)
    try:
        store.set_document(
            USERS,
            uid,
            {
                "uid": uid,
                "email": normalized_email,
                "displayName": display_name,
                "firstName": first_name.strip(),
                "lastName": last_name.strip(),
                "dob": dob,
                "gender": gender,
                "profileImage": "",
                "friends": [],
                "pendingRequests": [],
                "sentRequests": [],
                "createdAt": SERVER_TIMESTAMP,
                "lastLogin": SERVER_TIMESTAMP,
            },
        )
    except SocialError:
        logger.exception("Failed to create user document for %s; removing account", uid)
        db.delete(account)
        db.commit()
        raise
    return Principal(uid=uid, email=normalized_email, display_name=display_name)


def authenticate_account(db: Session, email: str, password: str) -> Principal:
    """Check credentials, raising :class:`Unauthenticated` with a friendly message."""

    normalized_email = (email or "").strip().lower()
    account = db.scalar(select(Account).where(Account.email == normalized_email))
    if account is None:
        raise Unauthenticated(AUTH_ERROR_MESSAGES["user-not-found"])
    if not verify_password(password, str(account.hashed_password)):
        raise Unauthenticated(AUTH_ERROR_MESSAGES["wrong-password"])
    return Principal(uid=str(account.uid), email=str(account.email), display_name=account.display_name)


def record_login(
    db: Session,
    store: DocumentStore,
    principal: Principal,
    *,
    attempts: int = 3,
    delay: float = 1.0,
) -> None:
    """Stamp the login time on the account and the User document (best effort)."""

    account = db.get(Account, principal.uid)
    if account is not None:
        account.last_login_at = datetime.now(timezone.utc)
        try:
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to record login for %s", principal.uid)

    try:
        retry_call(
            lambda: store.update_document(USERS, principal.uid, {"lastLogin": SERVER_TIMESTAMP}),
            attempts=attempts,
            delay=delay,
        )
    except SocialError as exc:
        logger.warning("Error updating user login for %s: %s", principal.uid, exc.message)


class IdentityProvider:
    """Tracks the signed-in principal for one client session.

    Listeners registered with :meth:`on_auth_change` are told about every
    sign-in and sign-out, and immediately about the current state.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        store: DocumentStore,
        *,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self._session_factory = session_factory
        self._store = store
        self._retry_attempts = retry_attempts
        self._retry_delay = retry_delay
        self._current: Principal | None = None
        self._listeners: list[AuthCallback] = []

    def current_principal(self) -> Principal | None:
        return self._current

    def require_principal(self) -> Principal:
        if self._current is None:
            raise Unauthenticated()
        return self._current

    @property
    def is_authenticated(self) -> bool:
        return self._current is not None

    def on_auth_change(self, callback: AuthCallback) -> Callable[[], None]:
        self._listeners.append(callback)
        callback(self._current)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def _set_principal(self, principal: Principal | None) -> None:
        self._current = principal
        for listener in list(self._listeners):
            try:
                listener(principal)
            except Exception:
                logger.exception("Auth state listener failed")

    @service_operation("signing up")
    def sign_up(
        self,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        dob: str | None = None,
        gender: str | None = None,
    ) -> OperationResult:
        with self._session_factory() as db:
            principal = register_account(
                db,
                self._store,
                email=email,
                password=password,
                first_name=first_name,
                last_name=last_name,
                dob=dob,
                gender=gender,
            )
        self._set_principal(principal)
        return OperationResult.ok(user=principal)

    @service_operation("signing in")
    def sign_in(self, email: str, password: str) -> OperationResult:
        with self._session_factory() as db:
            principal = authenticate_account(db, email, password)
            record_login(db, self._store, principal, attempts=self._retry_attempts, delay=self._retry_delay)
        self._set_principal(principal)
        return OperationResult.ok(user=principal)

    @service_operation("signing out")
    def sign_out(self) -> OperationResult:
        self._set_principal(None)
        return OperationResult.ok()


def get_current_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(_security),
) -> Principal:
    """Resolve the authenticated principal from the provided bearer token."""

    if not credentials or credentials.scheme.lower() != "bearer":
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing bearer token")

    uid = decode_access_token(credentials.credentials)
    store: DocumentStore = request.app.state.services.store
    try:
        document = store.find_document(USERS, uid)
    except SocialError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    if document is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return Principal.from_document(document)


__all__ = [
    "AUTH_ERROR_MESSAGES",
    "IdentityProvider",
    "Principal",
    "authenticate_account",
    "create_access_token",
    "decode_access_token",
    "get_current_principal",
    "hash_password",
    "record_login",
    "register_account",
    "verify_password",
]
