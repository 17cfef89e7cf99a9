"""
Main FastAPI module of the Cinco Apartments billing service.
Composition root: owns the shared storage service and its sync job.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from cinco_billing.config import settings
from cinco_billing.core.database import init_db
from cinco_billing.api.deps import get_management, get_storage
from cinco_billing.api.routes.billing import router as billing_router
from cinco_billing.api.routes.management import router as management_router
from cinco_billing.api.routes.reports import router as reports_router
from cinco_billing.api.routes.shared_data import router as shared_data_router, SharedSnapshot
from cinco_billing.services.management import ManagementService
from cinco_billing.services.sync.shared_storage import SharedStorage

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


def create_app(storage: Optional[SharedStorage] = None, start_sync: Optional[bool] = None) -> FastAPI:
    """
    Builds the application.

    Args:
        storage: Shared storage to use (one backed by the configured database when omitted)
        start_sync: Start the recurring sync job (settings.sync_autostart when omitted)
    """
    owns_storage = storage is None
    autostart = settings.sync_autostart if start_sync is None else start_sync

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifecycle - database, shared storage and sync job."""
        if owns_storage:
            init_db()
            app.state.shared_storage = SharedStorage()
        if autostart:
            app.state.shared_storage.start()

        yield

        if owns_storage:
            app.state.shared_storage.destroy()
        else:
            app.state.shared_storage.stop()

    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        lifespan=lifespan
    )
    app.state.shared_snapshot = SharedSnapshot()
    if storage is not None:
        app.state.shared_storage = storage

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.include_router(shared_data_router)  # /api/shared-data
    app.include_router(management_router)  # /api/sites, /api/tenants
    app.include_router(billing_router)  # /api/billing/*
    app.include_router(reports_router)  # /api/reports/*

    @app.get("/favicon.ico")
    def favicon():
        return Response(status_code=204)

    @app.get("/api/health")
    def health(storage: SharedStorage = Depends(get_storage)):
        """Liveness plus the outcome of the last sync tick."""
        result = storage.last_result
        return {
            "ok": True,
            "syncRunning": storage.running,
            "lastSync": result.status if result else None,
        }

    @app.post("/api/sync")
    def sync_now(storage: SharedStorage = Depends(get_storage)):
        """Runs one sync tick immediately."""
        result = storage.sync_data()
        return {
            "status": result.status,
            "sites": result.sites,
            "tenants": result.tenants,
            "billingRecords": result.billing_records,
            "error": result.error,
        }

    @app.post("/load_sample_data")
    def load_sample_data(service: ManagementService = Depends(get_management)):
        """Loads sample sites and tenants when none exist."""
        # Sample data - not real people
        if service.list_sites():
            return {"message": "Sites already exist, sample data skipped", "added": 0}

        laguna = service.create_site("Laguna", "Laguna Street 5", total_units=6)
        pidanna = service.create_site("Pidanna", "Pidanna Road 12", total_units=4)
        tenants_data = [
            {"name": "Juan Dela Cruz", "site_id": laguna.id, "door_number": "A-101", "base_rent": 15000},
            {"name": "Maria Santos", "site_id": laguna.id, "door_number": "A-102", "base_rent": 14000},
            {"name": "Jose Reyes", "site_id": pidanna.id, "door_number": "B-201", "base_rent": 12000},
        ]
        for tenant_data in tenants_data:
            service.create_tenant(**tenant_data)

        return {"message": "Sample data loaded", "added": 2 + len(tenants_data)}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
