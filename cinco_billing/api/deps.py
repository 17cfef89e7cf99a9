"""
FastAPI dependencies for services owned by the application.
"""

from fastapi import Request

from cinco_billing.services.management import ManagementService
from cinco_billing.services.sync.shared_storage import SharedStorage


def get_storage(request: Request) -> SharedStorage:
    """Shared storage instance created in the application lifespan."""
    return request.app.state.shared_storage


def get_management(request: Request) -> ManagementService:
    return ManagementService(get_storage(request))
