"""
Repair Tracking API
Workflow definitions, item intake and the repair lifecycle driven by them.
"""

from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from sqlalchemy import Engine

from repairtrack.config import settings
from repairtrack.db import build_engine, create_schema
from repairtrack.errors import install_exception_handlers
from repairtrack.logging import setup_logging
from repairtrack.routers import items, repairs, users, workflows
from repairtrack.util.ids import new_id


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_schema(app.state.engine)
    logger.info("Repair tracking API ready ({} env)", settings.app_env)
    yield
    app.state.engine.dispose()


def create_app(engine: Optional[Engine] = None) -> FastAPI:
    setup_logging()

    app = FastAPI(
        title="Repair Tracking API",
        version="1.0.0",
        description="Repair workflows, items and outstanding repairs",
        lifespan=lifespan,
    )
    app.state.engine = engine if engine is not None else build_engine()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_request_id_header(request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or new_id("req_")
        with logger.contextualize(request_id=request_id):
            resp: Response = await call_next(request)
        resp.headers["X-Request-Id"] = request_id
        return resp

    install_exception_handlers(app)

    app.include_router(workflows.router, prefix=settings.api_prefix, tags=["workflows"])
    app.include_router(items.router, prefix=settings.api_prefix, tags=["items"])
    app.include_router(repairs.router, prefix=settings.api_prefix, tags=["repairs"])
    app.include_router(users.router, prefix=settings.api_prefix, tags=["users"])

    @app.get(f"{settings.api_prefix}/healthz")
    def healthz():
        return {"status": "ok"}

    return app


app = create_app()
