"""
Per-session user context.

Created once at session bootstrap and handed explicitly to whatever needs
it; sign-out clears it. The analysis pipeline never reads it and only
receives the owner id.
"""
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import Session

from app.schemas.profile import ProfileResponse
from app.services import profile_service

THEMES = ("light", "dark")


@dataclass
class SessionContext:
    user_id: Optional[str]
    email: Optional[str] = None
    profile: Optional[ProfileResponse] = None
    theme: str = "light"

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    def toggle_theme(self) -> str:
        self.theme = "dark" if self.theme == "light" else "light"
        return self.theme


def bootstrap_session(
    db: Session,
    user_id: str,
    email: Optional[str] = None,
    full_name: Optional[str] = None,
    theme: Optional[str] = None,
) -> SessionContext:
    profile = profile_service.ensure_profile(db, user_id, email=email, full_name=full_name)
    return SessionContext(
        user_id=user_id,
        email=profile.email or email,
        profile=ProfileResponse.model_validate(profile),
        theme=theme if theme in THEMES else "light",
    )


def sign_out(context: SessionContext) -> None:
    context.user_id = None
    context.email = None
    context.profile = None
