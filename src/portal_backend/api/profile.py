"""Candidate profile and resume endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.orm import Session
import structlog

from portal_backend.auth.dependencies import get_caller
from portal_backend.auth.models import Caller
from portal_backend.core.database import get_db
from portal_backend.core.logging import performance_logger
from portal_backend.schemas.profile import ProfileOut, ProfileUpsert
from portal_backend.services.profile_service import ProfileService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/me/profile", tags=["profile"])


async def read_body(request: Request) -> bytes:
    return await request.body()


@router.get("", response_model=ProfileOut)
def get_profile(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    profile = ProfileService().get_profile(db, caller.user_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return profile


@router.put("", response_model=ProfileOut)
def upsert_profile(
    profile_data: ProfileUpsert,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    return ProfileService().upsert_profile(db, caller.user_id, profile_data.name, profile_data.email)


@router.put("/resume", response_model=ProfileOut)
def upload_resume(
    request: Request,
    filename: str = Query(..., description="Original file name; its extension selects the type"),
    content: bytes = Depends(read_body),
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    """Upload a resume as the raw request body; the previous one is deleted."""
    content_type: Optional[str] = request.headers.get("content-type")
    with performance_logger.log_operation_time(
        "upload_resume",
        user_id=str(caller.user_id),
        filename=filename,
        size_bytes=len(content)
    ):
        return ProfileService().attach_resume(db, caller.user_id, filename, content, content_type)


@router.delete("/resume", response_model=ProfileOut)
def remove_resume(
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    return ProfileService().remove_resume(db, caller.user_id)
