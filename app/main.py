import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.modules.auth.api import router as auth_router
from app.modules.orders.api import router as orders_router, admin_router as orders_admin_router
from app.modules.quota.api import router as quota_router, admin_router as quota_admin_router
from app.modules.credits.api import router as credits_router
from app.modules.packages.api import router as packages_router, admin_router as packages_admin_router
from app.modules.payment.api import router as payment_router
from app.modules.notifications.api import router as notifications_router
from app.modules.notifications.service import notification_service
from app.modules.admin.api import router as admin_router
from app.core.database import db_manager, init_db
from app.core.global_error_handler import register_global_exception_handlers
from app.core.config import settings

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Checkmate API",
    description="Document checking marketplace: slot purchases over M-Pesa, uploads and admin-processed AI/similarity reports.",
    version="1.0.0"
)

# Register global exception handlers
register_global_exception_handlers(app)

@app.on_event("startup")
async def startup_event():
    """Create tables, seed packages and make sure push keys exist."""
    await init_db()
    notification_service.ensure_vapid_keys()

@app.on_event("shutdown")
async def shutdown_event():
    """Close database connections on shutdown."""
    await db_manager.close()
    logger.info("Database engine closed.")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    # The frontend reads the original file name from downloads
    expose_headers=["Content-Disposition"],
)

# Include routers
app.include_router(auth_router)
app.include_router(orders_router)
app.include_router(orders_admin_router)
app.include_router(quota_router)
app.include_router(quota_admin_router)
app.include_router(credits_router)
app.include_router(packages_router)
app.include_router(packages_admin_router)
app.include_router(payment_router)
app.include_router(notifications_router)
app.include_router(admin_router)

@app.get("/")
async def root():
    return {"message": "Checkmate API is running"}

@app.get("/health")
async def health_check():
    return {"status": "ok"}
