import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError

from ravito.core.config import settings
from ravito.core.database import SessionLocal, init_db
from ravito.routes.activity import router as activity_router
from ravito.routes.admin import router as admin_router
from ravito.routes.auth import router as auth_router
from ravito.routes.credits import router as credits_router
from ravito.routes.health import router as health_router
from ravito.routes.orders import router as orders_router
from ravito.routes.products import router as products_router
from ravito.routes.reports import router as reports_router
from ravito.routes.status_history import router as status_history_router
from ravito.routes.zones import router as zones_router
from ravito.services.seed import seed_demo

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app = FastAPI(title="RAVITO API", version="0.1.0")

    origins = settings.cors_origins
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(admin_router, prefix="/admin", tags=["admin"])
    app.include_router(zones_router, prefix="/zones", tags=["zones"])
    app.include_router(products_router, prefix="/products", tags=["products"])
    app.include_router(orders_router, prefix="/orders", tags=["orders"])
    app.include_router(activity_router, prefix="/activity", tags=["activity"])
    app.include_router(reports_router, prefix="/reports", tags=["reports"])
    app.include_router(credits_router, prefix="/credits", tags=["credits"])
    app.include_router(status_history_router, prefix="/status-history", tags=["status-history"])

    return app


app = create_app()

# Reference data and the first admin
if settings.should_seed:
    try:
        init_db()
        with SessionLocal() as db:
            seed_demo(db)
    except SQLAlchemyError:
        logger.exception("database seeding failed")
