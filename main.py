"""
JEE Mentors Portal Client Entry Point.

Bootstraps the entire dependency graph via constructor injection,
restores the auth session and visits one page, printing the result as
JSON.  Every subsystem is wired here; there are no module-level globals.

Usage::

    python main.py                 # visit "/"
    python main.py /dashboard      # visit a protected page
    python main.py "/auth/callback?code=..."
"""

from __future__ import annotations

import json
import sys
import traceback
from typing import Optional, Sequence

from jeementor.config import ConfigurationError, get_config
from jeementor.database import DatabaseManager
from jeementor.guards import RouteGuard
from jeementor.logger import StructuredLogger, get_logger
from jeementor.services import create_services
from jeementor.session import SessionStore
from jeementor.shell import AppShell, PageRegistry, register_pages
from jeementor.utils.general import convert_to_json_safe


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Application entry point: wire dependencies and visit one page."""
    args = list(sys.argv[1:] if argv is None else argv)
    url = args[0] if args else "/"

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = get_config()
    config.validate_supabase_config()

    logger: StructuredLogger = get_logger("main")
    logger.info("Starting JEE Mentors client...")

    # ------------------------------------------------------------------
    # 2. Database Manager (Supabase client for auth + tables)
    # ------------------------------------------------------------------
    db = DatabaseManager(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
    )

    # ------------------------------------------------------------------
    # 3. Session Store (one per process)
    # ------------------------------------------------------------------
    store = SessionStore(auth_client=db.auth, logger=get_logger("session"))

    # ------------------------------------------------------------------
    # 4. Service Container (repositories + services, single composition root)
    # ------------------------------------------------------------------
    services = create_services(db=db, config=config, store=store)

    # ------------------------------------------------------------------
    # 5. Route guard and page registry
    # ------------------------------------------------------------------
    guard = RouteGuard(
        store=store,
        resolver=services["role_resolver"],
        logger=get_logger("guard"),
        login_path=config.LOGIN_PATH,
        home_path=config.HOME_PATH,
        timeout_s=config.GUARD_TIMEOUT_S,
    )
    registry = PageRegistry(logger=get_logger("pages"))
    register_pages(registry, store=store, services=services, config=config)

    # ------------------------------------------------------------------
    # 6. Shell: subscribe, restore the session, visit the page
    # ------------------------------------------------------------------
    shell = AppShell(
        store=store,
        guard=guard,
        registry=registry,
        logger=get_logger("shell"),
    )
    shell.start()
    try:
        store.initialize()
        result = shell.navigate(url)
        print(json.dumps(convert_to_json_safe(result), indent=2, ensure_ascii=False))
    finally:
        shell.stop()
        services["account_context"].stop()
        logger.info("JEE Mentors client shut down.")
    return 0


def _report_fatal_error(exc: BaseException) -> None:
    """Write a fatal error to stderr so command-line users get feedback."""
    if isinstance(exc, ConfigurationError):
        sys.stderr.write(f"Configuration error: {exc}\n")
        return
    detail = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    sys.stderr.write(f"FATAL: {type(exc).__name__}: {exc}\n{detail}")


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        pass
    except Exception as exc:
        _report_fatal_error(exc)
        sys.exit(1)
