"""
Settings API Router
Endpoints for per-user display settings
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.deps import get_db, services
from api.schemas.settings import SettingsUpdate, SettingsResponse


router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/user/{user_id}", response_model=SettingsResponse)
async def get_settings(
    user_id: str,
    db: Session = Depends(get_db)
):
    """
    Get a user's display settings, created with defaults on first access
    """
    settings_service = services.get_settings_service()

    return await settings_service.get_settings(user_id, db=db)


@router.put("/user/{user_id}", response_model=SettingsResponse)
async def update_settings(
    user_id: str,
    settings_data: SettingsUpdate,
    db: Session = Depends(get_db)
):
    """
    Update display settings

    - **focus_active_only**: Show only the active protocol when one exists
    - **hidden_protocol_ids**: Protocols left out of calendars and metrics
    - **default_protocol_id**: Protocol preselected when logging
    """
    settings_service = services.get_settings_service()

    return await settings_service.update_settings(
        user_id,
        timezone=settings_data.timezone,
        default_protocol_id=settings_data.default_protocol_id,
        focus_active_only=settings_data.focus_active_only,
        hidden_protocol_ids=settings_data.hidden_protocol_ids,
        db=db
    )


@router.post("/user/{user_id}/visibility/{protocol_id}", response_model=SettingsResponse)
async def toggle_protocol_visibility(
    user_id: str,
    protocol_id: str,
    db: Session = Depends(get_db)
):
    """
    Hide a visible protocol or show a hidden one
    """
    settings_service = services.get_settings_service()

    return await settings_service.toggle_visibility(user_id, protocol_id, db=db)
