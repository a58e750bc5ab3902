# backend/core/deps.py

"""
Common dependencies for the application
"""

from fastapi import Request

from .config import Settings
from .notification_service import NotificationService


def get_app_settings(request: Request) -> Settings:
    """Settings the running app was created with"""
    return request.app.state.settings


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service
