from __future__ import annotations

import threading
import time

import pytest

from conftest import make_session, make_user
from jeementor.models.enums import GuardState, PageAccess
from jeementor.models.navigation import PageOutcome
from jeementor.shell import AppShell, PageRegistry, parse_url, register_pages


@pytest.fixture()
def signed_in(auth, store):
    user = make_user("u1", "student@x.com", name="Student One")
    auth.add_account(user, "secret123")
    auth.session = make_session(user)
    store.initialize()
    return user


def test_parse_url_splits_query():
    request = parse_url("/login/?redirect=%2Fdashboard&error=auth_failed")

    assert request.path == "/login"
    assert request.query == {"redirect": "/dashboard", "error": "auth_failed"}


def test_public_page_renders_while_loading(shell):
    result = shell.navigate("/pricing")

    assert result.state == GuardState.AUTHORIZED
    assert [plan["name"] for plan in result.content["plans"]] == ["Basic", "Pro", "Test-Only"]


def test_protected_page_checking_until_store_loads(shell, store):
    result = shell.navigate("/dashboard")
    assert result.state == GuardState.CHECKING

    store.initialize()

    assert shell.current.path == "/login"
    assert shell.current.redirects == ["/login?redirect=%2Fdashboard"]


def test_signed_out_dashboard_redirects_to_login(shell, store):
    store.initialize()

    result = shell.navigate("/dashboard")

    assert result.path == "/login"
    assert result.redirects == ["/login?redirect=%2Fdashboard"]
    assert result.content["form"] == "login"
    assert result.content["redirect"] == "/dashboard"


def test_non_admin_sent_home_from_admin(shell, signed_in, admin_email):
    result = shell.navigate("/admin")

    assert result.redirects == ["/"]
    assert result.path == "/"
    assert result.state == GuardState.AUTHORIZED


def test_admin_console_content(shell, auth, store, admin_email, supabase):
    admin = make_user("a1", admin_email, name="Boss")
    auth.session = make_session(admin)
    store.initialize()
    supabase.tables["bookings"] = [
        {"id": "b1", "amount": 499, "status": "confirmed", "payment_status": "paid"},
        {"id": "b2", "amount": 299, "status": "pending", "payment_status": "paid"},
        {"id": "b3", "amount": 999, "status": "confirmed", "payment_status": "pending"},
    ]

    result = shell.navigate("/admin")

    assert result.state == GuardState.AUTHORIZED
    assert result.content["stats"]["total_revenue"] == 798
    assert result.content["stats"]["active_bookings"] == 1
    assert result.content["errors"] == []


def test_dashboard_shows_profile(shell, signed_in, supabase):
    supabase.tables["profiles"] = [
        {"id": "u1", "email": "student@x.com", "full_name": "Student One", "plan": "Pro Plan"},
    ]

    result = shell.navigate("/dashboard")

    assert result.state == GuardState.AUTHORIZED
    assert result.content["profile_loaded"] is True
    assert result.content["profile"]["plan"] == "Pro Plan"


def test_dashboard_without_profile_marks_not_loaded(shell, signed_in, supabase):
    supabase.fail_tables.add("profiles")

    result = shell.navigate("/dashboard")

    assert result.state == GuardState.AUTHORIZED
    assert result.content["profile_loaded"] is False
    assert result.content["identity"]["id"] == "u1"


def test_callback_with_session_lands_on_dashboard(shell, store, auth, supabase):
    store.initialize()
    auth.codes["abc"] = make_session(
        make_user("u1", "a@x.com", name="A", provider="google", name_key="name")
    )

    result = shell.navigate("/auth/callback?code=abc")

    assert result.redirects == ["/dashboard"]
    assert result.path == "/dashboard"
    assert result.state == GuardState.AUTHORIZED
    assert result.content["profile"]["provider"] == "google"
    assert [name for name, _ in auth.calls].count("exchange_code_for_session") == 1


def test_callback_without_session_lands_on_login(shell, store):
    store.initialize()

    result = shell.navigate("/auth/callback")

    assert result.path == "/login"


def test_callback_error_shows_message_on_login(shell, store):
    store.initialize()

    result = shell.navigate("/auth/callback?code=expired")

    assert result.path == "/login"
    assert result.content["error_message"] == "Authentication failed. Please try again."


def test_login_page_redirects_signed_in_user(shell, signed_in):
    result = shell.navigate("/login?redirect=/admin")

    assert result.path == "/"  # /admin, then home as a non-admin
    assert result.redirects == ["/admin", "/"]


def test_sign_out_leaves_authorized_page(shell, signed_in, auth):
    assert shell.navigate("/dashboard").state == GuardState.AUTHORIZED

    auth.sign_out()

    assert shell.current.path == "/login"
    assert shell.current.redirects == ["/login?redirect=%2Fdashboard"]


def test_sign_in_on_login_page_moves_to_requested_page(shell, store, services, auth):
    store.initialize()
    auth.add_account(make_user("u1", "student@x.com"), "secret123")
    shell.navigate("/dashboard")

    services["auth_service"].login("student@x.com", "secret123")

    assert shell.current.path == "/dashboard"
    assert shell.current.state == GuardState.AUTHORIZED


def test_unknown_page(shell):
    result = shell.navigate("/nope")

    assert result.error == "not_found"
    assert result.content["status"] == 404


def test_redirect_loop_is_cut(store, guard, logger):
    registry = PageRegistry(logger=logger)
    registry.register("/a", "A", lambda request: PageOutcome(redirect_to="/b"))
    registry.register("/b", "B", lambda request: PageOutcome(redirect_to="/a"))
    app_shell = AppShell(store=store, guard=guard, registry=registry, logger=logger)

    result = app_shell.navigate("/a")

    assert result.error == "too_many_redirects"


def test_loader_failure_is_reported(store, guard, logger):
    def broken(request):
        raise RuntimeError("template missing")

    registry = PageRegistry(logger=logger)
    registry.register("/broken", "Broken", broken)
    app_shell = AppShell(store=store, guard=guard, registry=registry, logger=logger)

    result = app_shell.navigate("/broken")

    assert result.error == "page_error"


def test_registry_rejects_relative_paths(logger):
    registry = PageRegistry(logger=logger)

    with pytest.raises(ValueError):
        registry.register("dashboard", "Dashboard", lambda request: PageOutcome())


def test_registered_access_levels(logger, store, services, config):
    registry = PageRegistry(logger=logger)
    register_pages(registry, store=store, services=services, config=config)

    assert [entry.path for entry in registry.get_pages_for_access(PageAccess.ADMIN)] == ["/admin"]
    assert [
        entry.path for entry in registry.get_pages_for_access(PageAccess.AUTHENTICATED)
    ] == ["/dashboard"]
    assert {"/", "/login", "/signup", "/auth/callback", "/test-series", "/webinars"} <= set(
        entry.path for entry in registry.get_pages_for_access(PageAccess.PUBLIC)
    )


def test_token_refresh_during_guarded_visit_does_not_stall(shell, store, auth, monkeypatch):
    user = make_user("u1", "student@x.com", name="Student One")
    auth.session = make_session(user)
    store.initialize()
    auth.emit("TOKEN_REFRESHED", make_session(user, expires_in=-5))
    fresh = make_session(user)

    def refreshing_get_session():
        # gotrue refreshes an expired token and announces it before returning
        auth.session = fresh
        auth.emit("TOKEN_REFRESHED", fresh)
        return fresh

    monkeypatch.setattr(auth, "get_session", refreshing_get_session)
    started = time.monotonic()

    result = shell.navigate("/dashboard")

    assert time.monotonic() - started < 1.0
    assert result.path == "/dashboard"
    assert result.redirects == []
    assert result.state == GuardState.AUTHORIZED


def test_sign_out_from_another_thread_leaves_authorized_page(shell, signed_in, auth):
    assert shell.navigate("/dashboard").state == GuardState.AUTHORIZED

    worker = threading.Thread(target=auth.sign_out)
    worker.start()
    worker.join(timeout=5)

    assert not worker.is_alive()
    assert shell.current.path == "/login"


def test_signed_out_booking_goes_to_login(shell, store, supabase):
    supabase.tables["test_series"] = [{"id": "t1", "title": "Mock 1", "price": 499, "is_active": True}]
    store.initialize()

    result = shell.navigate("/test-series?book=t1")

    assert result.path == "/login"
    assert result.redirects == ["/login?redirect=%2Ftest-series"]
    assert supabase.writes("bookings") == []


def test_signed_in_booking_lands_back_on_catalog(shell, signed_in, supabase):
    supabase.tables["test_series"] = [{"id": "t1", "title": "Mock 1", "price": 499, "is_active": True}]
    supabase.tables["profiles"] = [
        {"id": "m1", "email": "m@x.com", "full_name": "Mentor", "is_mentor": True},
    ]

    result = shell.navigate("/test-series?book=t1")

    booking = supabase.tables["bookings"][0]
    assert booking["user_id"] == "u1"
    assert result.path == "/test-series"
    assert result.content["booked"] == booking["id"]
    assert [item["id"] for item in result.content["items"]] == ["t1"]
    assert [mentor["id"] for mentor in result.content["mentors"]] == ["m1"]
