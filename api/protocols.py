"""
Protocols API Router
Endpoints for dosing protocol management
"""

from typing import List, Optional
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.deps import get_db, services, value_error_status
from api.schemas.protocol import (
    ProtocolCreate,
    ProtocolRestart,
    ProtocolUpdate,
    ProtocolResponse,
    ProtocolSummary,
)
from tools.schedule_generator import format_interval


router = APIRouter(prefix="/protocols", tags=["protocols"])


@router.post(
    "/user/{user_id}",
    response_model=ProtocolResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_protocol(
    user_id: str,
    protocol_data: ProtocolCreate,
    db: Session = Depends(get_db)
):
    """
    Create a dosing protocol

    - **name**: Display name
    - **start_date**: First scheduled day
    - **interval_days**: Days between doses, in half-day steps
    - **dose_ml** / **concentration_mg_per_ml**: Dose per injection
    - **is_active**: Make it the only active protocol
    """
    protocol_service = services.get_protocol_service()

    try:
        return await protocol_service.create_protocol(
            user_id=user_id,
            name=protocol_data.name,
            start_date=protocol_data.start_date,
            interval_days=protocol_data.interval_days,
            dose_ml=protocol_data.dose_ml,
            concentration_mg_per_ml=protocol_data.concentration_mg_per_ml,
            end_date=protocol_data.end_date,
            notes=protocol_data.notes,
            theme_key=protocol_data.theme_key,
            is_active=protocol_data.is_active,
            db=db
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.post(
    "/user/{user_id}/restart",
    response_model=ProtocolResponse,
    status_code=status.HTTP_201_CREATED
)
async def restart_protocol(
    user_id: str,
    protocol_data: ProtocolRestart,
    db: Session = Depends(get_db)
):
    """
    Start a new active protocol

    The current active protocol is deactivated and ends on the new start date.
    """
    protocol_service = services.get_protocol_service()

    try:
        return await protocol_service.create_or_restart_protocol(
            user_id=user_id,
            name=protocol_data.name,
            start_date=protocol_data.start_date,
            interval_days=protocol_data.interval_days,
            dose_ml=protocol_data.dose_ml,
            concentration_mg_per_ml=protocol_data.concentration_mg_per_ml,
            notes=protocol_data.notes,
            db=db
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )


@router.get("/user/{user_id}", response_model=List[ProtocolResponse])
async def list_protocols(
    user_id: str,
    include_trashed: bool = Query(False, description="Include trashed protocols"),
    db: Session = Depends(get_db)
):
    """
    Get all protocols for a user, newest start first
    """
    protocol_service = services.get_protocol_service()

    return await protocol_service.list_protocols(
        user_id,
        include_trashed=include_trashed,
        db=db
    )


@router.get("/user/{user_id}/summary", response_model=List[ProtocolSummary])
async def get_protocol_summaries(
    user_id: str,
    today: Optional[date] = Query(None, description="Reference day (default: today)"),
    db: Session = Depends(get_db)
):
    """
    Last log, next due day and dose metrics per protocol, active first
    """
    insights_service = services.get_insights_service()

    summaries = await insights_service.get_protocol_summaries(user_id, today=today, db=db)

    return [
        ProtocolSummary(
            id=s["protocol"].id,
            name=s["protocol"].name,
            is_active=s["protocol"].is_active,
            is_visible=s["is_visible"],
            interval_days=s["protocol"].interval_days,
            interval_label=format_interval(s["protocol"].interval_days),
            last_log_date=s["last_log_date"],
            next_due=s["next_due"],
            within_range=s["within_range"],
            days_remaining=s["days_remaining"],
            mg_per_injection=s["mg_per_injection"],
            mg_per_week=s["mg_per_week"]
        ) for s in summaries
    ]


@router.get("/{protocol_id}", response_model=ProtocolResponse)
async def get_protocol(
    protocol_id: int,
    db: Session = Depends(get_db)
):
    """
    Get a protocol by ID
    """
    protocol_service = services.get_protocol_service()

    protocol = await protocol_service.get_protocol(protocol_id, db=db)

    if not protocol:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Protocol {protocol_id} not found"
        )

    return protocol


@router.put("/{protocol_id}", response_model=ProtocolResponse)
async def update_protocol(
    protocol_id: int,
    protocol_data: ProtocolUpdate,
    db: Session = Depends(get_db)
):
    """
    Update protocol fields; omitted fields are left unchanged
    """
    protocol_service = services.get_protocol_service()

    updates = protocol_data.model_dump(exclude_unset=True, exclude_none=True)

    try:
        return await protocol_service.update_protocol(protocol_id, db=db, **updates)
    except ValueError as e:
        raise HTTPException(
            status_code=value_error_status(e),
            detail=str(e)
        )


@router.post("/{protocol_id}/activate", response_model=ProtocolResponse)
async def activate_protocol(
    protocol_id: int,
    db: Session = Depends(get_db)
):
    """
    Make a protocol the user's only active one
    """
    protocol_service = services.get_protocol_service()

    try:
        return await protocol_service.set_active(protocol_id, db=db)
    except ValueError as e:
        raise HTTPException(
            status_code=value_error_status(e),
            detail=str(e)
        )


@router.post("/{protocol_id}/trash", response_model=ProtocolResponse)
async def trash_protocol(
    protocol_id: int,
    db: Session = Depends(get_db)
):
    """
    Move a protocol to the trash; its logs stay in history
    """
    protocol_service = services.get_protocol_service()

    try:
        return await protocol_service.trash_protocol(protocol_id, db=db)
    except ValueError as e:
        raise HTTPException(
            status_code=value_error_status(e),
            detail=str(e)
        )


@router.post("/{protocol_id}/restore", response_model=ProtocolResponse)
async def restore_protocol(
    protocol_id: int,
    db: Session = Depends(get_db)
):
    """
    Bring a protocol back from the trash
    """
    protocol_service = services.get_protocol_service()

    try:
        return await protocol_service.restore_protocol(protocol_id, db=db)
    except ValueError as e:
        raise HTTPException(
            status_code=value_error_status(e),
            detail=str(e)
        )
