from __future__ import annotations

import pytest

from jeementor.services.role_resolver import RoleResolver


@pytest.fixture()
def resolver(admin_repo, logger):
    return RoleResolver(repo=admin_repo, logger=logger)


def test_listed_email_is_admin(resolver, admin_email):
    assert resolver.is_admin(admin_email) is True
    assert resolver.get_admin_role(admin_email) == "admin"


def test_email_is_normalised_before_lookup(resolver, admin_email):
    assert resolver.is_admin("  Boss@JEEMentors.in ") is True


@pytest.mark.parametrize("email", ["", "   ", None, "student@x.com"])
def test_unknown_or_empty_email_is_not_admin(resolver, admin_email, email):
    assert resolver.is_admin(email) is False
    assert resolver.get_admin_role(email) is None


def test_transport_failure_denies(resolver, admin_email, supabase):
    supabase.fail_tables.add("admin_users")

    assert resolver.is_admin(admin_email) is False


def test_empty_email_skips_lookup(resolver, supabase):
    resolver.is_admin("")

    assert supabase.calls == []


def test_granted_email_is_stored_normalised(admin_repo, resolver, supabase):
    admin_repo.grant("  New.Admin@X.com")

    assert supabase.tables["admin_users"][0]["email"] == "new.admin@x.com"
    assert resolver.is_admin("new.admin@x.com") is True

    assert admin_repo.revoke("NEW.ADMIN@x.com") is True
    assert resolver.is_admin("new.admin@x.com") is False
