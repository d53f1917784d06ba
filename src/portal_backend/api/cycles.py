"""Organization and recruiting cycle administration endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
import structlog

from portal_backend.auth.dependencies import get_caller, require_admin
from portal_backend.auth.models import Caller
from portal_backend.core.database import get_db
from portal_backend.core.logging import performance_logger
from portal_backend.schemas.cycle import (
    CycleCreate,
    CycleOut,
    CycleTimelineUpdate,
    OrganizationCreate,
    SubteamCreate,
)
from portal_backend.services.cycle_service import CycleService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["cycles"])


@router.post("/organizations", status_code=status.HTTP_201_CREATED)
def create_organization(
    organization_data: OrganizationCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    organization = CycleService().create_organization(db, organization_data)
    return {"id": str(organization.id), "slug": organization.slug, "name": organization.name}


@router.post("/organizations/{organization_id}/subteams", status_code=status.HTTP_201_CREATED)
def add_subteam(
    organization_id: UUID,
    subteam_data: SubteamCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    subteam = CycleService().add_subteam(db, organization_id, subteam_data)
    return {"id": str(subteam.id), "organization_id": str(organization_id), "name": subteam.name}


@router.post(
    "/organizations/{organization_id}/cycles",
    response_model=CycleOut,
    status_code=status.HTTP_201_CREATED
)
def create_cycle(
    organization_id: UUID,
    cycle_data: CycleCreate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    """Create a recruiting cycle; an active one replaces the current active cycle."""
    with performance_logger.log_operation_time(
        "create_cycle",
        user_id=str(caller.user_id),
        organization_id=str(organization_id)
    ):
        return CycleService().create_cycle(db, organization_id, cycle_data, actor_id=caller.user_id)


@router.get("/organizations/{organization_id}/cycles", response_model=List[CycleOut])
def list_cycles(
    organization_id: UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    return CycleService().list_cycles(db, organization_id)


@router.get("/organizations/{organization_id}/active-cycle", response_model=CycleOut)
def get_active_cycle(
    organization_id: UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(get_caller)
):
    cycle = CycleService().get_active_cycle(db, organization_id)
    if cycle is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Organization is not recruiting"
        )
    return cycle


@router.post("/cycles/{cycle_id}/activate", response_model=CycleOut)
def activate_cycle(
    cycle_id: UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    return CycleService().activate_cycle(db, cycle_id, actor_id=caller.user_id)


@router.post("/cycles/{cycle_id}/deactivate", response_model=CycleOut)
def deactivate_cycle(
    cycle_id: UUID,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    return CycleService().deactivate_cycle(db, cycle_id, actor_id=caller.user_id)


@router.patch("/cycles/{cycle_id}/timeline", response_model=CycleOut)
def update_timeline(
    cycle_id: UUID,
    timeline: CycleTimelineUpdate,
    db: Session = Depends(get_db),
    caller: Caller = Depends(require_admin)
):
    """Edit a cycle's dates and late-submission policy."""
    return CycleService().update_timeline(db, cycle_id, timeline, actor_id=caller.user_id)
