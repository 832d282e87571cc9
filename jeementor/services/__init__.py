"""
Business Logic Services Package.

Services depend on the Repository layer for data access and on the
``SessionStore`` for the current session.

The ``create_services()`` factory wires every repository and service together,
returning a typed dict that the page shell can consume without knowing the
internal dependency graph.
"""

from __future__ import annotations

from typing import TypedDict

from jeementor.config import AppConfig
from jeementor.database import DatabaseManager
from jeementor.logger import get_logger
from jeementor.repositories.admin_user_repository import AdminUserRepository
from jeementor.repositories.catalog_repository import (
    BookingRepository,
    MentorshipSessionRepository,
    TestSeriesRepository,
    WebinarRepository,
)
from jeementor.repositories.profile_repository import ProfileRepository
from jeementor.services.account_context import AccountContext
from jeementor.services.admin_service import AdminService
from jeementor.services.auth_service import AuthService
from jeementor.services.catalog_service import CatalogService
from jeementor.services.profile_sync import ProfileSynchronizer
from jeementor.services.role_resolver import RoleResolver
from jeementor.session import SessionStore


class ServiceContainer(TypedDict):
    """Typed container for all application services."""

    role_resolver: RoleResolver
    profile_synchronizer: ProfileSynchronizer
    account_context: AccountContext
    auth_service: AuthService
    admin_service: AdminService
    catalog_service: CatalogService


def create_services(
    db: DatabaseManager,
    config: AppConfig,
    store: SessionStore,
) -> ServiceContainer:
    """
    Wire all repositories and services together.

    This is the single composition root for the service layer.  The
    entry point calls this once at startup, before
    ``store.initialize()``, so that ``AccountContext`` is subscribed in
    time for the initial session delivery.

    Args:
        db: Initialised DatabaseManager.
        config: Application configuration.
        store: The process-wide session store.

    Returns:
        ServiceContainer mapping service names to fully-wired instances.
    """
    logger = get_logger("services")

    # ------------------------------------------------------------------
    # 1. Repositories (data-access layer)
    # ------------------------------------------------------------------
    profile_repo = ProfileRepository(db=db, logger=logger)
    admin_user_repo = AdminUserRepository(db=db, logger=logger)
    test_series_repo = TestSeriesRepository(db=db, logger=logger)
    webinar_repo = WebinarRepository(db=db, logger=logger)
    session_repo = MentorshipSessionRepository(db=db, logger=logger)
    booking_repo = BookingRepository(db=db, logger=logger)

    # ------------------------------------------------------------------
    # 2. Leaf services (no service dependencies)
    # ------------------------------------------------------------------
    role_resolver = RoleResolver(repo=admin_user_repo, logger=logger)
    profile_synchronizer = ProfileSynchronizer(
        repo=profile_repo,
        logger=logger,
        default_plan=config.DEFAULT_PLAN,
    )
    auth_service = AuthService(
        auth_client=db.auth,
        store=store,
        config=config,
        logger=logger,
    )

    # ------------------------------------------------------------------
    # 3. Orchestration services (depend on other services)
    # ------------------------------------------------------------------
    account_context = AccountContext(
        store=store,
        synchronizer=profile_synchronizer,
        logger=logger,
    )
    account_context.start()

    admin_service = AdminService(
        profiles=profile_repo,
        test_series=test_series_repo,
        webinars=webinar_repo,
        sessions=session_repo,
        bookings=booking_repo,
        resolver=role_resolver,
        logger=logger,
    )
    catalog_service = CatalogService(
        repositories={
            TestSeriesRepository.TABLE: test_series_repo,
            WebinarRepository.TABLE: webinar_repo,
            MentorshipSessionRepository.TABLE: session_repo,
            BookingRepository.TABLE: booking_repo,
        },
        profiles=profile_repo,
        resolver=role_resolver,
        logger=logger,
    )

    return ServiceContainer(
        role_resolver=role_resolver,
        profile_synchronizer=profile_synchronizer,
        account_context=account_context,
        auth_service=auth_service,
        admin_service=admin_service,
        catalog_service=catalog_service,
    )
