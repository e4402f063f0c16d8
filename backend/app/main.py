import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis

from config import settings
from models import async_session, engine
from api.notifications import router as notifications_router
from core.websocket import router as ws_router, notifications_to_ws_bridge
from services.alerting import (
    FleetRepository,
    MaintenanceAlertOrchestrator,
    NotificationSink,
    RecipientRepository,
    SettingsRepository,
)
from services.email import EmailDispatcher, ResendClient

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("fleet.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Fleet alerting backend starting... DEBUG=%s", settings.DEBUG)

    # Redis
    redis = Redis.from_url(settings.REDIS_URL, decode_responses=False)
    app.state.redis = redis
    logger.info("Redis connected: %s", settings.REDIS_URL)

    # Email transport (credentials are checked on first send)
    email_client = ResendClient()
    if not settings.RESEND_API_KEY:
        logger.info("RESEND_API_KEY not set, emails will fail if enabled in settings")

    # Alerting engine
    sink = NotificationSink(async_session, redis)
    app.state.notification_sink = sink
    app.state.alert_orchestrator = MaintenanceAlertOrchestrator(
        settings_source=SettingsRepository(async_session),
        fleet_source=FleetRepository(async_session),
        sink=sink,
        recipient_source=RecipientRepository(async_session),
        dispatcher=EmailDispatcher(email_client),
    )

    # Notifications → WebSocket bridge
    bridge_task = asyncio.create_task(notifications_to_ws_bridge(redis))

    yield

    # Shutdown
    logger.info("Fleet alerting backend shutting down...")
    bridge_task.cancel()
    try:
        await bridge_task
    except asyncio.CancelledError:
        pass

    await email_client.close()
    await redis.close()
    await engine.dispose()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Fleet Maintenance Alerts API",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(notifications_router)
app.include_router(ws_router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}
