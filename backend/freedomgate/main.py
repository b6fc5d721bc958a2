import logging
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from freedomgate.config import Settings, get_settings
from freedomgate.database import create_engine, create_sessionmaker
from freedomgate.core.errors import register_exception_handlers
from freedomgate.core.security import TokenService
from freedomgate.routers import auth, plans, subscriptions, payment, admin
from freedomgate.services.expiry import run_expiry_sweep

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    scheduler = AsyncIOScheduler()
    if settings.EXPIRY_SWEEP_INTERVAL_MINUTES > 0:
        scheduler.add_job(
            run_expiry_sweep,
            "interval",
            minutes=settings.EXPIRY_SWEEP_INTERVAL_MINUTES,
            args=[app.state.sessionmaker],
            id="expiry_sweep",
        )
        scheduler.start()
        logger.info("Expiry sweep scheduled every %d minutes", settings.EXPIRY_SWEEP_INTERVAL_MINUTES)
    yield
    if scheduler.running:
        scheduler.shutdown()
    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the API. ``uvicorn freedomgate.main:create_app --factory`` serves it."""
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(title="FreedomGate API", lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = create_engine(settings.DATABASE_URL)
    app.state.sessionmaker = create_sessionmaker(app.state.engine)
    app.state.tokens = TokenService(
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM,
        expire_days=settings.ACCESS_TOKEN_EXPIRE_DAYS,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(plans.router)
    app.include_router(subscriptions.router)
    app.include_router(payment.router)
    app.include_router(admin.router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app
