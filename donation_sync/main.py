"""
Main FastAPI application
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware

from donation_sync.config import get_settings
from donation_sync.database import engine, AsyncSessionLocal, create_tables
from donation_sync.api import donations, requirements, matches, analytics, users, realtime
from donation_sync.services.sync_service import DonationSyncService, build_sync_service, get_sync_service
from donation_sync.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    service = build_sync_service(settings, AsyncSessionLocal)

    if not service.placeholder_mode:
        await create_tables(engine)
        logger.info("Database tables created")

    app.state.sync_service = service
    logger.info(f"Sync service ready (placeholder_mode={service.placeholder_mode})")

    yield

    await service.aclose()
    await engine.dispose()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(donations.router, prefix="/api/donations", tags=["Donations"])
app.include_router(requirements.router, prefix="/api/requirements", tags=["Requirements"])
app.include_router(matches.router, prefix="/api/matches", tags=["Matches"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(realtime.router, prefix="/ws", tags=["Realtime"])


@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running"
    }


@app.get("/health")
async def health_check(service: DonationSyncService = Depends(get_sync_service)):
    return {"status": "healthy", "placeholder_mode": service.placeholder_mode}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "donation_sync.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
