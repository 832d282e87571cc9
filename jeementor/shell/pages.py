"""Page Definitions.

Registers every route of the portal with a ``PageRegistry``.  Loaders
are thin: they read from services and return plain dicts for the
caller to render.  Marketing copy is static.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urlencode

from jeementor.config import AppConfig
from jeementor.models.auth_models import CALLBACK_ERROR_MESSAGES
from jeementor.models.enums import PageAccess
from jeementor.models.navigation import PageOutcome, PageRequest
from jeementor.services import ServiceContainer
from jeementor.session import SessionStore
from jeementor.shell.page_registry import PageLoader, PageRegistry

# (path, title, summary)
MARKETING_PAGES: tuple[tuple[str, str, str], ...] = (
    ("/", "JEE Mentors", "Mentorship, mock tests and webinars from IIT alumni."),
    ("/about", "About Us", "Our mission, values, journey and core team."),
    ("/contact", "Contact", "Reach the team by phone, email, WhatsApp or the contact form."),
    ("/mentorship", "Mentorship", "One-on-one and group mentorship with IIT mentors."),
    ("/privacy-policy", "Privacy Policy", "What we collect, how we use it and your rights."),
    ("/terms-and-conditions", "Terms & Conditions", "Terms governing use of the portal."),
)

PRICING_PLANS: tuple[dict[str, Any], ...] = (
    {
        "name": "Basic",
        "description": "Perfect for getting started with JEE preparation",
        "monthly_price": 299,
        "yearly_price": 2990,
        "popular": False,
    },
    {
        "name": "Pro",
        "description": "Most comprehensive plan for serious JEE aspirants",
        "monthly_price": 499,
        "yearly_price": 4990,
        "popular": True,
    },
    {
        "name": "Test-Only",
        "description": "Just the test series for self-motivated students",
        "monthly_price": 149,
        "yearly_price": 1490,
        "popular": False,
    },
)


def _static_page(summary: str, **extra: Any) -> PageLoader:
    def _load(request: PageRequest) -> PageOutcome:
        return PageOutcome(content={"summary": summary, **extra})

    return _load


def register_pages(
    registry: PageRegistry,
    store: SessionStore,
    services: ServiceContainer,
    config: AppConfig,
) -> None:
    """Register all public, authenticated and admin pages."""
    auth_service = services["auth_service"]
    account_context = services["account_context"]
    admin_service = services["admin_service"]
    catalog_service = services["catalog_service"]

    # ------------------------------------------------------------------
    # Public: marketing
    # ------------------------------------------------------------------
    for path, title, summary in MARKETING_PAGES:
        registry.register(path, title, _static_page(summary))

    registry.register(
        "/pricing",
        "Pricing",
        _static_page("Plans for every stage of preparation.", plans=list(PRICING_PLANS)),
    )

    def _catalog_page(kind: str) -> PageLoader:
        def _load(request: PageRequest) -> PageOutcome:
            result = catalog_service.list_records(kind, active_only=True)
            if not result.success:
                return PageOutcome(content={"items": [], "error": result.error})
            return PageOutcome(
                content={"items": [item.model_dump(mode="json") for item in result.data]},
            )

        return _load

    def _test_series(request: PageRequest) -> PageOutcome:
        content: dict[str, Any] = {"booked": request.query.get("booked")}

        # ?book=<id> books that test series for the signed-in user, then
        # redirects so re-visiting the page cannot book twice.
        item_id = request.query.get("book")
        if item_id:
            session = store.get_current_session()
            if session is None:
                return PageOutcome(
                    redirect_to=f"{config.LOGIN_PATH}?{urlencode({'redirect': request.path})}",
                )
            booking = catalog_service.book(session.identity, "test_series", item_id)
            if booking.success:
                return PageOutcome(
                    redirect_to=f"{request.path}?{urlencode({'booked': booking.data.id})}",
                )
            content["booking_error"] = booking.error

        content.update(_catalog_page("test_series")(request).content)
        mentors = catalog_service.list_featured_mentors()
        content["mentors"] = (
            [mentor.model_dump(mode="json") for mentor in mentors.data] if mentors.success else []
        )
        return PageOutcome(content=content)

    registry.register("/test-series", "Test Series", _test_series)
    registry.register("/webinars", "Webinars", _catalog_page("webinars"))

    # ------------------------------------------------------------------
    # Public: auth
    # ------------------------------------------------------------------
    def _login(request: PageRequest) -> PageOutcome:
        redirect = auth_service.sanitize_redirect(request.query.get("redirect"))
        if store.get_current_session() is not None:
            return PageOutcome(redirect_to=redirect)
        return PageOutcome(
            content={
                "form": "login",
                "redirect": redirect,
                "error_message": CALLBACK_ERROR_MESSAGES.get(request.query.get("error", "")),
            },
        )

    def _signup(request: PageRequest) -> PageOutcome:
        if store.get_current_session() is not None:
            return PageOutcome(redirect_to=config.DASHBOARD_PATH)
        return PageOutcome(
            content={"form": "signup", "min_password_length": config.MIN_PASSWORD_LENGTH},
        )

    def _auth_callback(request: PageRequest) -> PageOutcome:
        result = auth_service.complete_oauth_callback(request.query.get("code"))
        return PageOutcome(redirect_to=result.redirect_to or config.LOGIN_PATH)

    registry.register(config.LOGIN_PATH, "Sign In", _login)
    registry.register("/signup", "Create Account", _signup)
    registry.register(config.AUTH_CALLBACK_PATH, "Signing you in", _auth_callback)

    # ------------------------------------------------------------------
    # Authenticated
    # ------------------------------------------------------------------
    def _dashboard(request: PageRequest) -> PageOutcome:
        session = store.get_current_session()
        if session is None:
            return PageOutcome(redirect_to=config.LOGIN_PATH)

        profile = account_context.profile
        if profile is None or profile.id != session.identity.id:
            profile = account_context.refresh()

        return PageOutcome(
            content={
                "identity": session.identity.model_dump(mode="json"),
                "profile_loaded": profile is not None,
                "profile": profile.model_dump(mode="json") if profile is not None else None,
            },
        )

    registry.register(
        config.DASHBOARD_PATH, "Dashboard", _dashboard, access=PageAccess.AUTHENTICATED,
    )

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------
    def _admin(request: PageRequest) -> PageOutcome:
        stats = admin_service.get_stats()
        users = admin_service.list_users()
        errors = [result.error for result in (stats, users) if not result.success]
        return PageOutcome(
            content={
                "stats": stats.data.model_dump() if stats.success else None,
                "users": (
                    [user.model_dump(mode="json") for user in users.data]
                    if users.success
                    else []
                ),
                "errors": errors,
            },
        )

    registry.register("/admin", "Admin Console", _admin, access=PageAccess.ADMIN)
