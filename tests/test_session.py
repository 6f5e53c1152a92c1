import pytest

from app.core.exceptions import NotFoundError
from app.core.session import SessionContext, bootstrap_session, sign_out
from app.services import profile_service


def test_bootstrap_creates_profile_on_first_sign_in(db_session):
    context = bootstrap_session(db_session, "u9", email="u9@example.com", full_name="Ravi Kumar")

    assert context.is_authenticated
    assert context.user_id == "u9"
    assert context.email == "u9@example.com"
    assert context.profile.full_name == "Ravi Kumar"
    assert profile_service.get_profile(db_session, "u9") is not None


def test_existing_email_is_never_overwritten(db_session):
    bootstrap_session(db_session, "u9", email="first@example.com")
    context = bootstrap_session(db_session, "u9", email="second@example.com")

    assert context.email == "first@example.com"
    assert context.profile.email == "first@example.com"


def test_missing_email_is_filled_in_later(db_session):
    bootstrap_session(db_session, "u9")
    context = bootstrap_session(db_session, "u9", email="late@example.com")
    assert context.profile.email == "late@example.com"


def test_update_profile_changes_display_name_only(db_session):
    bootstrap_session(db_session, "u9", email="u9@example.com", full_name="Old Name")
    profile = profile_service.update_profile(db_session, "u9", "  New Name ")

    assert profile.full_name == "New Name"
    assert profile.email == "u9@example.com"


def test_update_unknown_profile_raises(db_session):
    with pytest.raises(NotFoundError):
        profile_service.update_profile(db_session, "ghost", "Name")


def test_theme_toggle_and_sign_out(db_session):
    context = bootstrap_session(db_session, "u9", theme="dark")
    assert context.theme == "dark"
    assert context.toggle_theme() == "light"
    assert context.toggle_theme() == "dark"

    sign_out(context)
    assert not context.is_authenticated
    assert context.profile is None
    assert context.email is None
    # Display preference survives sign-out
    assert context.theme == "dark"


def test_unknown_theme_defaults_to_light(db_session):
    assert bootstrap_session(db_session, "u9", theme="neon").theme == "light"
    assert SessionContext(user_id=None).is_authenticated is False
