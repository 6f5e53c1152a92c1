from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.session import SessionContext
from app.database import get_db
from app.dependencies import get_session_context
from app.schemas.profile import ProfileResponse, ProfileUpdate
from app.services import profile_service

router = APIRouter()


@router.get("/profile", response_model=ProfileResponse)
def read_profile(context: SessionContext = Depends(get_session_context)):
    return context.profile


@router.patch("/profile", response_model=ProfileResponse)
def update_profile(
    update: ProfileUpdate,
    context: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db),
):
    return profile_service.update_profile(db, context.user_id, update.full_name)
