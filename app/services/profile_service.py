import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import AppException, NotFoundError
from app.models.profile import Profile

logger = logging.getLogger(__name__)


def get_profile(db: Session, user_id: str) -> Optional[Profile]:
    return db.query(Profile).filter(Profile.id == user_id).first()


def ensure_profile(db: Session, user_id: str, email: Optional[str] = None, full_name: Optional[str] = None) -> Profile:
    """
    Return the user's profile, creating it on first sign-in.
    An email already on the profile is never overwritten.
    """
    profile = get_profile(db, user_id)
    if profile is not None:
        if profile.email is None and email:
            profile.email = email
            _commit(db)
        return profile

    profile = Profile(id=user_id, email=email, full_name=full_name)
    db.add(profile)
    _commit(db)
    db.refresh(profile)
    logger.info(f"Created profile for {user_id}")
    return profile


def update_profile(db: Session, user_id: str, full_name: str) -> Profile:
    profile = get_profile(db, user_id)
    if profile is None:
        raise NotFoundError("Profile not found")
    profile.full_name = full_name.strip()
    _commit(db)
    db.refresh(profile)
    return profile


def _commit(db: Session):
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Error saving profile: {e}")
        raise AppException("Failed to save profile.", status_code=500, error_code="PROFILE_SAVE_FAILED")
