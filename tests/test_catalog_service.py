from __future__ import annotations

import pytest

from jeementor.models.auth_models import Identity


@pytest.fixture()
def catalog(services):
    return services["catalog_service"]


@pytest.fixture()
def webinars(supabase):
    supabase.tables["webinars"] = [
        {"id": "w1", "title": "Optics", "price": 0, "is_active": True, "created_at": "2025-01-01T00:00:00+00:00"},
        {"id": "w2", "title": "Archived", "is_active": False, "created_at": "2025-02-01T00:00:00+00:00"},
    ]


def test_kinds_are_table_names(catalog):
    assert catalog.kinds == ["bookings", "mentorship_sessions", "test_series", "webinars"]


def test_list_active_only(catalog, webinars):
    assert [w.id for w in catalog.list_records("webinars").data] == ["w2", "w1"]
    assert [w.id for w in catalog.list_records("webinars", active_only=True).data] == ["w1"]


def test_active_only_ignored_for_kinds_without_flag(catalog, supabase):
    supabase.tables["bookings"] = [{"id": "b1", "amount": 10}]

    assert len(catalog.list_records("bookings", active_only=True).data) == 1


def test_unknown_kind(catalog):
    result = catalog.list_records("coupons")

    assert result.status_code == 400
    assert "Unknown record type 'coupons'" in result.error


def test_list_failure_is_500(catalog, supabase):
    supabase.fail_tables.add("test_series")

    assert catalog.list_records("test_series").status_code == 500


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

def test_admin_creates_record(catalog, admin_email, supabase, caplog):
    result = catalog.create_record(
        admin_email,
        "webinars",
        {"id": "forged", "title": "Rotation Masterclass", "topics": "Rotation, Torque", "price": 99},
    )

    assert result.success is True
    assert result.data.id != "forged"
    assert result.data.topics == ["Rotation", "Torque"]
    assert supabase.tables["webinars"][0]["title"] == "Rotation Masterclass"
    assert '"action": "CREATE"' in caplog.text


def test_invalid_record_is_400(catalog, admin_email, supabase):
    result = catalog.create_record(admin_email, "test_series", {"title": "", "price": -5})

    assert result.status_code == 400
    assert "title" in result.error and "price" in result.error
    assert supabase.writes("test_series") == []


def test_invalid_enum_is_400(catalog, admin_email):
    result = catalog.create_record(
        admin_email, "mentorship_sessions", {"title": "Doubt clearing", "status": "someday"},
    )

    assert result.status_code == 400


def test_non_admin_cannot_create(catalog, admin_email, supabase):
    result = catalog.create_record("student@x.com", "webinars", {"title": "Sneaky"})

    assert result.status_code == 403
    assert supabase.writes("webinars") == []


# ---------------------------------------------------------------------------
# Update / delete
# ---------------------------------------------------------------------------

def test_update_merges_and_writes_changed_fields(catalog, admin_email, webinars, supabase):
    result = catalog.update_record(
        admin_email, "webinars", "w1", {"price": 199, "created_at": "1999-01-01T00:00:00+00:00"},
    )

    assert result.success is True
    assert result.data.price == 199
    stored = supabase.tables["webinars"][0]
    assert stored["title"] == "Optics"
    assert stored["created_at"] == "2025-01-01T00:00:00+00:00"


def test_update_rejects_invalid_merge(catalog, admin_email, webinars):
    assert catalog.update_record(admin_email, "webinars", "w1", {"price": -1}).status_code == 400


def test_update_without_changes(catalog, admin_email, webinars):
    assert catalog.update_record(admin_email, "webinars", "w1", {"id": "w9"}).status_code == 400


def test_update_missing_record(catalog, admin_email, webinars):
    assert catalog.update_record(admin_email, "webinars", "nope", {"price": 5}).status_code == 404


def test_delete_record(catalog, admin_email, webinars, supabase):
    assert catalog.delete_record(admin_email, "webinars", "w2").success is True
    assert [row["id"] for row in supabase.tables["webinars"]] == ["w1"]
    assert catalog.delete_record(admin_email, "webinars", "w2").status_code == 404


def test_non_admin_cannot_delete(catalog, admin_email, webinars):
    assert catalog.delete_record("student@x.com", "webinars", "w1").status_code == 403


# ---------------------------------------------------------------------------
# Student bookings
# ---------------------------------------------------------------------------

@pytest.fixture()
def series_rows(supabase):
    supabase.tables["test_series"] = [
        {"id": "t1", "title": "Full Syllabus Mock", "price": 499},
        {"id": "t2", "title": "Free Diagnostic"},
    ]


def test_signed_in_student_books_test_series(catalog, series_rows, supabase, caplog):
    student = Identity(id="u1", email="student@x.com")

    result = catalog.book(student, "test_series", "t1")

    assert result.success is True
    row = supabase.tables["bookings"][0]
    assert (row["user_id"], row["booking_type"], row["item_id"]) == ("u1", "test", "t1")
    assert (row["amount"], row["status"]) == (499, "pending")
    assert '"action": "CREATE"' in caplog.text


def test_free_item_books_at_zero(catalog, series_rows, supabase):
    catalog.book(Identity(id="u1", email="student@x.com"), "test_series", "t2")

    assert supabase.tables["bookings"][0]["amount"] == 0


def test_signed_out_booking_is_refused(catalog, series_rows, supabase):
    result = catalog.book(None, "test_series", "t1")

    assert result.status_code == 401
    assert supabase.writes("bookings") == []


def test_booking_unknown_item_or_kind(catalog, series_rows):
    student = Identity(id="u1", email="student@x.com")

    assert catalog.book(student, "test_series", "missing").status_code == 404
    assert catalog.book(student, "bookings", "b1").status_code == 400


def test_featured_mentors_are_capped(catalog, supabase):
    supabase.tables["profiles"] = [
        {"id": f"m{i}", "email": f"m{i}@x.com", "full_name": f"Mentor {i}", "is_mentor": True}
        for i in range(5)
    ] + [{"id": "s1", "email": "s1@x.com", "full_name": "Student"}]

    mentors = catalog.list_featured_mentors().data

    assert len(mentors) == 3
    assert all(mentor.is_mentor for mentor in mentors)
