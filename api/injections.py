"""
Injections API Router
Endpoints for logging doses and managing pending entries
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.orm import Session

from api.deps import get_db, services, value_error_status
from api.schemas.injection import (
    InjectionCreate,
    InjectionUpdate,
    OptimisticInjectionCreate,
    InjectionResponse,
)
from services.injection_service import to_injection_record


router = APIRouter(prefix="/injections", tags=["injections"])


def _to_response(row) -> InjectionResponse:
    return InjectionResponse.model_validate(to_injection_record(row))


@router.post(
    "/user/{user_id}",
    response_model=InjectionResponse,
    status_code=status.HTTP_201_CREATED
)
async def log_injection(
    user_id: str,
    injection_data: InjectionCreate,
    db: Session = Depends(get_db)
):
    """
    Log a dose

    - **protocol_id**: Protocol the dose belongs to
    - **date**: Day the dose was taken
    - **dose_ml** / **concentration_mg_per_ml**: Default to the protocol's values
    - **optimistic_id**: Pending entry this write replaces
    """
    injection_service = services.get_injection_service()

    try:
        injection = await injection_service.log_injection(
            user_id=user_id,
            protocol_id=injection_data.protocol_id,
            day=injection_data.date,
            dose_ml=injection_data.dose_ml,
            concentration_mg_per_ml=injection_data.concentration_mg_per_ml,
            notes=injection_data.notes,
            optimistic_id=injection_data.optimistic_id,
            db=db
        )
    except ValueError as e:
        raise HTTPException(
            status_code=value_error_status(e),
            detail=str(e)
        )

    return _to_response(injection)


@router.get("/user/{user_id}", response_model=List[InjectionResponse])
async def list_injections(
    user_id: str,
    include_trashed: bool = Query(False, description="Include trashed logs"),
    include_optimistic: bool = Query(False, description="Include pending entries"),
    protocol_id: Optional[int] = Query(None, description="Only logs for this protocol"),
    db: Session = Depends(get_db)
):
    """
    Get a user's injection history, most recent first
    """
    injection_service = services.get_injection_service()

    injections = await injection_service.list_injections(
        user_id,
        include_trashed=include_trashed,
        protocol_id=protocol_id,
        db=db
    )
    durable = [_to_response(row) for row in injections]

    if not include_optimistic:
        return durable

    pending = [
        InjectionResponse.model_validate(entry)
        for entry in injection_service.list_optimistic(user_id)
        if protocol_id is None or entry.protocol_id == str(protocol_id)
    ]
    return pending + durable


@router.put("/{injection_id}", response_model=InjectionResponse)
async def update_injection(
    injection_id: int,
    injection_data: InjectionUpdate,
    db: Session = Depends(get_db)
):
    """
    Edit a logged dose; dose in mg is recomputed
    """
    injection_service = services.get_injection_service()

    try:
        injection = await injection_service.update_injection(
            injection_id,
            day=injection_data.date,
            dose_ml=injection_data.dose_ml,
            concentration_mg_per_ml=injection_data.concentration_mg_per_ml,
            notes=injection_data.notes,
            db=db
        )
    except ValueError as e:
        raise HTTPException(
            status_code=value_error_status(e),
            detail=str(e)
        )

    return _to_response(injection)


@router.post("/{injection_id}/trash", response_model=InjectionResponse)
async def trash_injection(
    injection_id: int,
    db: Session = Depends(get_db)
):
    """
    Move a log to the trash
    """
    injection_service = services.get_injection_service()

    try:
        injection = await injection_service.set_trashed(injection_id, True, db=db)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )

    return _to_response(injection)


@router.post("/{injection_id}/restore", response_model=InjectionResponse)
async def restore_injection(
    injection_id: int,
    db: Session = Depends(get_db)
):
    """
    Bring a log back from the trash
    """
    injection_service = services.get_injection_service()

    try:
        injection = await injection_service.set_trashed(injection_id, False, db=db)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )

    return _to_response(injection)


# ==================== OPTIMISTIC ENTRIES ====================

@router.post(
    "/user/{user_id}/optimistic",
    response_model=InjectionResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_optimistic_injection(
    user_id: str,
    injection_data: OptimisticInjectionCreate
):
    """
    Register a pending dose that shows in calendars until its write settles
    """
    injection_service = services.get_injection_service()

    entry = injection_service.add_optimistic(
        user_id,
        protocol_id=str(injection_data.protocol_id),
        day=injection_data.date,
        dose_ml=injection_data.dose_ml,
        concentration_mg_per_ml=injection_data.concentration_mg_per_ml,
        notes=injection_data.notes
    )
    return InjectionResponse.model_validate(entry)


@router.delete(
    "/user/{user_id}/optimistic/{optimistic_id}",
    status_code=status.HTTP_204_NO_CONTENT
)
async def resolve_optimistic_injection(
    user_id: str,
    optimistic_id: str
):
    """
    Drop a pending entry
    """
    injection_service = services.get_injection_service()

    if not injection_service.resolve_optimistic(user_id, optimistic_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Pending injection {optimistic_id} not found"
        )
