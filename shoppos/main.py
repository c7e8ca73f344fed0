import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shoppos.api.routes.auth import router as auth_router
from shoppos.api.routes.customers import router as customers_router
from shoppos.api.routes.inventory import router as inventory_router
from shoppos.api.routes.sales import router as sales_router
from shoppos.api.routes.shops import router as shops_router
from shoppos.core.config import Settings, settings
from shoppos.core.errors import ShopPosError
from shoppos.core.logging import configure_logging
from shoppos.db.database import Base, build_engine, build_session_factory
from shoppos.services.bootstrap import ensure_system_owner

import shoppos.models  # noqa: F401

logger = logging.getLogger("shoppos")


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or settings
    configure_logging(app_settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        engine = build_engine(app_settings.database_url)
        app.state.engine = engine
        app.state.session_factory = build_session_factory(engine)
        if app_settings.auto_create_schema:
            Base.metadata.create_all(engine)
        db = app.state.session_factory()
        try:
            ensure_system_owner(db, app_settings.bootstrap_admin_username, app_settings.bootstrap_admin_password)
        finally:
            db.close()
        try:
            yield
        finally:
            engine.dispose()

    app = FastAPI(title=app_settings.app_name, lifespan=lifespan)
    app.state.settings = app_settings
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(app_settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.perf_counter()
        response = await call_next(request)
        duration = round((time.perf_counter() - start_time) * 1000, 2)
        logger.info("%s %s status=%s time=%sms", request.method, request.url.path, response.status_code, duration)
        return response

    @app.exception_handler(ShopPosError)
    async def handle_domain_error(_: Request, exc: ShopPosError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "kind": "validation",
                "message": "Request validation failed",
                "errors": jsonable_encoder(exc.errors()),
            },
        )

    app.include_router(auth_router)
    app.include_router(shops_router)
    app.include_router(inventory_router)
    app.include_router(customers_router)
    app.include_router(sales_router)

    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "ok"}

    return app


app = create_app()
