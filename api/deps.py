"""
API Dependencies
Common dependencies for FastAPI endpoints
"""

from fastapi import status

from database import get_db


def value_error_status(error: ValueError) -> int:
    """404 for missing records, 400 for everything else"""
    if "not found" in str(error):
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


class ServiceDependency:
    """
    Dependency injection for services
    """

    @staticmethod
    def get_protocol_service():
        from services.protocol_service import protocol_service
        return protocol_service

    @staticmethod
    def get_injection_service():
        from services.injection_service import injection_service
        return injection_service

    @staticmethod
    def get_settings_service():
        from services.settings_service import settings_service
        return settings_service

    @staticmethod
    def get_calendar_service():
        from services.calendar_service import calendar_service
        return calendar_service

    @staticmethod
    def get_insights_service():
        from services.insights_service import insights_service
        return insights_service


# Service dependency instances
services = ServiceDependency()
