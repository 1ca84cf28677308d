"""
Services Module
Business logic layer for the DoseCadence application
"""

from services.protocol_service import ProtocolService, protocol_service
from services.injection_service import InjectionService, injection_service
from services.settings_service import SettingsService, settings_service
from services.calendar_service import CalendarService, calendar_service
from services.insights_service import InsightsService, insights_service


__all__ = [
    # Service classes
    "ProtocolService",
    "InjectionService",
    "SettingsService",
    "CalendarService",
    "InsightsService",
    # Singleton instances
    "protocol_service",
    "injection_service",
    "settings_service",
    "calendar_service",
    "insights_service",
]
