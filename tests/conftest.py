"""Shared fixtures: an in-memory stand-in for the supabase client.

``FakeSupabase.table()`` supports the PostgREST builder calls the
repositories make; ``FakeAuth`` mimics ``client.auth`` including
state-change callbacks.  Both support failure injection.
"""

from __future__ import annotations

import itertools
import time
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Callable, Optional

import pytest

from jeementor.config import AppConfig, reset_config
from jeementor.database import DatabaseManager
from jeementor.guards import RouteGuard
from jeementor.logger import StructuredLogger
from jeementor.repositories import AdminUserRepository, ProfileRepository
from jeementor.services import create_services
from jeementor.session import SessionStore
from jeementor.shell import AppShell, PageRegistry, register_pages


# ---------------------------------------------------------------------------
# Provider-shaped objects
# ---------------------------------------------------------------------------

class FakeAuthError(Exception):
    """Provider error carrying a ``message`` like supabase's AuthApiError."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class FakeAPIError(Exception):
    """PostgREST error (constraint violations and the like)."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


def make_user(
    user_id: str,
    email: str,
    name: Optional[str] = None,
    provider: str = "email",
    avatar: Optional[str] = None,
    name_key: str = "full_name",
) -> SimpleNamespace:
    metadata: dict[str, Any] = {}
    if name is not None:
        metadata[name_key] = name
    if avatar is not None:
        metadata["avatar_url"] = avatar
    return SimpleNamespace(
        id=user_id,
        email=email,
        user_metadata=metadata,
        app_metadata={"provider": provider},
    )


def make_session(user: SimpleNamespace, expires_in: int = 3600) -> SimpleNamespace:
    return SimpleNamespace(
        access_token=f"access-{user.id}",
        refresh_token=f"refresh-{user.id}",
        expires_at=int(time.time()) + expires_in,
        user=user,
    )


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

class FakeQuery:
    def __init__(self, client: "FakeSupabase", table: str) -> None:
        self._client = client
        self._table = table
        self._op = "select"
        self._payload: Any = None
        self._filters: list[Callable[[dict[str, Any]], bool]] = []
        self._order: Optional[tuple[str, bool]] = None
        self._limit: Optional[int] = None
        self._count: Optional[str] = None
        self._head = False

    def select(self, *columns: str, count: Optional[str] = None, head: bool = False) -> "FakeQuery":
        self._op = "select"
        self._count = count
        self._head = head
        return self

    def insert(self, payload: Any) -> "FakeQuery":
        self._op, self._payload = "insert", payload
        return self

    def upsert(self, payload: Any) -> "FakeQuery":
        self._op, self._payload = "upsert", payload
        return self

    def update(self, payload: dict[str, Any]) -> "FakeQuery":
        self._op, self._payload = "update", payload
        return self

    def delete(self) -> "FakeQuery":
        self._op = "delete"
        return self

    def eq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(lambda row: row.get(column) == value)
        return self

    def neq(self, column: str, value: Any) -> "FakeQuery":
        self._filters.append(lambda row: row.get(column) != value)
        return self

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def execute(self) -> SimpleNamespace:
        client = self._client
        client.calls.append((self._table, self._op))
        delay = client.delays.get(self._table)
        if delay:
            time.sleep(delay)
        if self._table in client.fail_tables or (self._table, self._op) in client.fail_ops:
            raise ConnectionError(f"network down ({self._table} {self._op})")

        rows = client.tables.setdefault(self._table, [])
        matched = [row for row in rows if all(f(row) for f in self._filters)]

        if self._op == "select":
            if self._order is not None:
                column, desc = self._order
                matched.sort(key=lambda row: str(row.get(column) or ""), reverse=desc)
            if self._limit is not None:
                matched = matched[: self._limit]
            count = len(matched) if self._count else None
            data = [] if self._head else [dict(row) for row in matched]
            return SimpleNamespace(data=data, count=count)

        if self._op in ("insert", "upsert"):
            payloads = self._payload if isinstance(self._payload, list) else [self._payload]
            stored = []
            for payload in payloads:
                row = dict(payload)
                row.setdefault("id", f"{self._table}-{next(client.ids)}")
                row.setdefault("created_at", datetime.now(timezone.utc).isoformat())
                existing = [r for r in rows if r.get("id") == row["id"]]
                if existing and self._op == "insert":
                    raise FakeAPIError("duplicate key value violates unique constraint")
                if existing:
                    existing[0].update(row)
                    stored.append(dict(existing[0]))
                else:
                    rows.append(row)
                    stored.append(dict(row))
            return SimpleNamespace(data=stored, count=None)

        if self._op == "update":
            for row in matched:
                row.update(self._payload)
            return SimpleNamespace(data=[dict(row) for row in matched], count=None)

        if self._op == "delete":
            for row in matched:
                rows.remove(row)
            return SimpleNamespace(data=[dict(row) for row in matched], count=None)

        raise AssertionError(f"unsupported op {self._op}")


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

class FakeSubscription:
    def __init__(self, auth: "FakeAuth", callback: Callable[..., None]) -> None:
        self._auth = auth
        self._callback = callback

    def unsubscribe(self) -> None:
        if self._callback in self._auth.callbacks:
            self._auth.callbacks.remove(self._callback)


class FakeAuth:
    def __init__(self) -> None:
        self.session: Optional[SimpleNamespace] = None
        self.accounts: dict[str, tuple[str, SimpleNamespace]] = {}
        self.callbacks: list[Callable[..., None]] = []
        self.errors: dict[str, Exception] = {}
        self.codes: dict[str, SimpleNamespace] = {}
        self.confirm_email = False
        self.calls: list[tuple[str, Any]] = []

    # -- helpers ------------------------------------------------------------

    def add_account(self, user: SimpleNamespace, password: str = "secret123") -> None:
        self.accounts[user.email] = (password, user)

    def emit(self, event: str, session: Optional[SimpleNamespace]) -> None:
        for callback in list(self.callbacks):
            callback(event, session)

    def _raise_if_configured(self, method: str) -> None:
        if method in self.errors:
            raise self.errors[method]

    # -- client.auth surface ---------------------------------------------------

    def on_auth_state_change(self, callback: Callable[..., None]) -> FakeSubscription:
        self.callbacks.append(callback)
        return FakeSubscription(self, callback)

    def get_session(self) -> Optional[SimpleNamespace]:
        self.calls.append(("get_session", None))
        self._raise_if_configured("get_session")
        return self.session

    def sign_in_with_password(self, credentials: dict[str, str]) -> SimpleNamespace:
        self.calls.append(("sign_in_with_password", credentials))
        self._raise_if_configured("sign_in_with_password")
        account = self.accounts.get(credentials["email"])
        if account is None or account[0] != credentials["password"]:
            raise FakeAuthError("Invalid login credentials")
        self.session = make_session(account[1])
        self.emit("SIGNED_IN", self.session)
        return SimpleNamespace(user=account[1], session=self.session)

    def sign_in_with_oauth(self, params: dict[str, Any]) -> SimpleNamespace:
        self.calls.append(("sign_in_with_oauth", params))
        self._raise_if_configured("sign_in_with_oauth")
        return SimpleNamespace(
            provider=params["provider"],
            url=f"https://test.supabase.co/auth/v1/authorize?provider={params['provider']}",
        )

    def sign_up(self, params: dict[str, Any]) -> SimpleNamespace:
        self.calls.append(("sign_up", params))
        self._raise_if_configured("sign_up")
        if params["email"] in self.accounts:
            raise FakeAuthError("User already registered")
        user = make_user(
            f"user-{len(self.accounts) + 1}",
            params["email"],
            name=params["options"]["data"]["full_name"],
        )
        self.add_account(user, params["password"])
        if self.confirm_email:
            return SimpleNamespace(user=user, session=None)
        self.session = make_session(user)
        self.emit("SIGNED_IN", self.session)
        return SimpleNamespace(user=user, session=self.session)

    def sign_out(self) -> None:
        self.calls.append(("sign_out", None))
        self._raise_if_configured("sign_out")
        self.session = None
        self.emit("SIGNED_OUT", None)

    def exchange_code_for_session(self, params: dict[str, str]) -> SimpleNamespace:
        self.calls.append(("exchange_code_for_session", params))
        self._raise_if_configured("exchange_code_for_session")
        session = self.codes.pop(params["auth_code"], None)
        if session is None:
            raise FakeAuthError("invalid flow state, no valid flow state found")
        self.session = session
        self.emit("SIGNED_IN", session)
        return SimpleNamespace(user=session.user, session=session)


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail_tables: set[str] = set()
        self.fail_ops: set[tuple[str, str]] = set()
        self.delays: dict[str, float] = {}
        self.ids = itertools.count(1)
        self.auth = FakeAuth()

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def writes(self, table: str) -> list[str]:
        return [op for name, op in self.calls if name == table and op != "select"]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch: pytest.MonkeyPatch):
    """Console-only logging and known credentials for every test."""
    monkeypatch.setenv("LOG_FILE", "")
    monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
    monkeypatch.setenv("SUPABASE_ANON_KEY", "test-anon-key")
    reset_config()
    yield
    reset_config()


@pytest.fixture()
def logger() -> StructuredLogger:
    return StructuredLogger(name="jeementor.tests", log_file="")


@pytest.fixture()
def config() -> AppConfig:
    return AppConfig(_env_file=None, GUARD_TIMEOUT_S=2.0)


@pytest.fixture()
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture()
def auth(supabase: FakeSupabase) -> FakeAuth:
    return supabase.auth


@pytest.fixture()
def db(monkeypatch: pytest.MonkeyPatch, supabase: FakeSupabase, logger: StructuredLogger) -> DatabaseManager:
    monkeypatch.setattr("jeementor.database.create_client", lambda url, key: supabase)
    return DatabaseManager(
        supabase_url="https://test.supabase.co",
        supabase_key="test-anon-key",
        logger=logger,
    )


@pytest.fixture()
def profile_repo(db: DatabaseManager, logger: StructuredLogger) -> ProfileRepository:
    return ProfileRepository(db=db, logger=logger)


@pytest.fixture()
def admin_repo(db: DatabaseManager, logger: StructuredLogger) -> AdminUserRepository:
    return AdminUserRepository(db=db, logger=logger)


@pytest.fixture()
def store(auth: FakeAuth, logger: StructuredLogger) -> SessionStore:
    return SessionStore(auth_client=auth, logger=logger)


@pytest.fixture()
def services(db: DatabaseManager, config: AppConfig, store: SessionStore):
    container = create_services(db=db, config=config, store=store)
    yield container
    container["account_context"].stop()


@pytest.fixture()
def guard(store: SessionStore, services, config: AppConfig, logger: StructuredLogger) -> RouteGuard:
    return RouteGuard(
        store=store,
        resolver=services["role_resolver"],
        logger=logger,
        login_path=config.LOGIN_PATH,
        home_path=config.HOME_PATH,
        timeout_s=config.GUARD_TIMEOUT_S,
    )


@pytest.fixture()
def shell(store: SessionStore, guard: RouteGuard, services, config: AppConfig, logger: StructuredLogger):
    registry = PageRegistry(logger=logger)
    register_pages(registry, store=store, services=services, config=config)
    app_shell = AppShell(store=store, guard=guard, registry=registry, logger=logger)
    app_shell.start()
    yield app_shell
    app_shell.stop()


@pytest.fixture()
def admin_email(supabase: FakeSupabase) -> str:
    supabase.tables.setdefault("admin_users", []).append(
        {"id": "admin-row-1", "email": "boss@jeementors.in", "role": "admin"}
    )
    return "boss@jeementors.in"
