"""Tests for the identity provider and per-client social sessions."""
from __future__ import annotations

import os
from typing import Iterator

import pytest
from sqlalchemy import delete

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_socialsphere.db")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")

from socialsphere.config import Settings  # noqa: E402
from socialsphere.constants import USERS  # noqa: E402
from socialsphere.database import Base, SessionLocal, engine  # noqa: E402
from socialsphere.models import Account, StoredDocument  # noqa: E402
from socialsphere.errors import RemoteUnavailable, Unauthenticated  # noqa: E402
from socialsphere.services import IdentityProvider, SocialSession, create_access_token, decode_access_token  # noqa: E402
from socialsphere.store import SqlDocumentStore  # noqa: E402


@pytest.fixture(scope="module", autouse=True)
def _create_schema() -> Iterator[None]:
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def _clean_database() -> Iterator[None]:
    with SessionLocal() as session:
        session.execute(delete(StoredDocument))
        session.execute(delete(Account))
        session.commit()
    yield


@pytest.fixture()
def store() -> SqlDocumentStore:
    return SqlDocumentStore(SessionLocal)


@pytest.fixture()
def identity(store: SqlDocumentStore) -> IdentityProvider:
    return IdentityProvider(SessionLocal, store, retry_attempts=1, retry_delay=0)


def test_sign_up_creates_account_and_user_document(store: SqlDocumentStore, identity: IdentityProvider) -> None:
    result = identity.sign_up("Ada@Example.com", "secret1", "Ada", "Lovelace", dob="1815-12-10", gender="female")

    assert result.success, result.error
    principal = result["user"]
    assert principal.email == "ada@example.com"
    assert principal.display_name == "Ada Lovelace"
    assert identity.current_principal() == principal

    user = store.get_document(USERS, principal.uid)
    assert user.get("displayName") == "Ada Lovelace"
    assert user.get("friends") == []
    assert user.get("pendingRequests") == []
    assert user.get("sentRequests") == []
    assert user.get("createdAt")


def test_sign_up_validation_and_duplicates(identity: IdentityProvider) -> None:
    weak = identity.sign_up("ada@example.com", "123", "Ada", "Lovelace")
    assert not weak.success
    assert weak.code == "validation_error"

    invalid = identity.sign_up("not-an-email", "secret1", "Ada", "Lovelace")
    assert not invalid.success
    assert "Invalid email format" in invalid.error

    assert identity.sign_up("ada@example.com", "secret1", "Ada", "Lovelace").success
    duplicate = identity.sign_up("ada@example.com", "secret1", "Ada", "Lovelace")
    assert not duplicate.success
    assert duplicate.error == "This email is already registered"


class _UserWriteFailingStore(SqlDocumentStore):
    def set_document(self, collection, doc_id, fields):
        if collection == USERS:
            raise RemoteUnavailable()
        return super().set_document(collection, doc_id, fields)


def test_failed_user_document_write_releases_the_email(store: SqlDocumentStore) -> None:
    failing = IdentityProvider(SessionLocal, _UserWriteFailingStore(SessionLocal), retry_attempts=1, retry_delay=0)

    result = failing.sign_up("ada@example.com", "secret1", "Ada", "Lovelace")

    assert not result.success
    assert result.code == "remote_unavailable"
    assert failing.current_principal() is None
    with SessionLocal() as session:
        assert session.query(Account).count() == 0

    retried = IdentityProvider(SessionLocal, store, retry_attempts=1, retry_delay=0)
    assert retried.sign_up("ada@example.com", "secret1", "Ada", "Lovelace").success


def test_sign_in_reports_friendly_errors(identity: IdentityProvider) -> None:
    assert identity.sign_up("ada@example.com", "secret1", "Ada", "Lovelace").success
    identity.sign_out()

    unknown = identity.sign_in("nobody@example.com", "secret1")
    assert unknown.error == "No account found with this email"

    wrong = identity.sign_in("ada@example.com", "wrong-password")
    assert wrong.error == "Incorrect password"
    assert identity.current_principal() is None

    ok = identity.sign_in("ADA@example.com", "secret1")
    assert ok.success
    assert identity.is_authenticated


def test_sign_in_stamps_last_login(store: SqlDocumentStore, identity: IdentityProvider) -> None:
    uid = identity.sign_up("ada@example.com", "secret1", "Ada", "Lovelace")["user"].uid
    before = store.get_document(USERS, uid).get("lastLogin")

    identity.sign_in("ada@example.com", "secret1")

    assert store.get_document(USERS, uid).get("lastLogin") >= before
    with SessionLocal() as session:
        assert session.get(Account, uid).last_login_at is not None


def test_auth_listeners_see_current_state_and_changes(identity: IdentityProvider) -> None:
    seen: list[str | None] = []
    unsubscribe = identity.on_auth_change(lambda principal: seen.append(principal.uid if principal else None))
    assert seen == [None]

    uid = identity.sign_up("ada@example.com", "secret1", "Ada", "Lovelace")["user"].uid
    identity.sign_out()
    assert seen == [None, uid, None]

    unsubscribe()
    identity.sign_in("ada@example.com", "secret1")
    assert seen == [None, uid, None]


def test_require_principal_without_sign_in(identity: IdentityProvider) -> None:
    with pytest.raises(Unauthenticated):
        identity.require_principal()


def test_sign_out_clears_engagement_state_of_the_session(store: SqlDocumentStore) -> None:
    settings = Settings(DATABASE_URL="sqlite://", RETRY_ATTEMPTS=1, RETRY_DELAY_SECONDS=0)
    session = SocialSession.open(SessionLocal, store, settings)
    assert session.identity.sign_up("ada@example.com", "secret1", "Ada", "Lovelace").success
    uid = session.user_id

    post_id = session.services.feed.create_post(uid, "hello")["postId"]
    assert session.services.engagement.like_post(uid, post_id).success
    session.services.feed.listen_to_posts(lambda posts: None)
    assert len(session.services.engagement.cache) == 1

    session.identity.sign_out()

    assert session.user_id is None
    assert len(session.services.engagement.cache) == 0
    assert store.subscriptions.active_count() == 0


def test_session_context_manager_releases_listeners(store: SqlDocumentStore) -> None:
    settings = Settings(DATABASE_URL="sqlite://")
    with SocialSession.open(SessionLocal, store, settings) as session:
        session.services.feed.listen_to_posts(lambda posts: None)
        assert store.subscriptions.active_count() == 1
    assert store.subscriptions.active_count() == 0


def test_access_token_round_trip() -> None:
    token = create_access_token("user-123")
    assert decode_access_token(token) == "user-123"
