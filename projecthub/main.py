from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from projecthub.core.directus import DirectusError
from projecthub.core.log import setup_logging
from projecthub.core.settings import S
from projecthub.metrics import metrics_endpoint, metrics_middleware, set_app_info
from projecthub.routers.comments import router as comments_router
from projecthub.routers.misc import router as misc_router
from projecthub.routers.projects import router as projects_router
from projecthub.routers.reactions import router as reactions_router
from projecthub.routers.uploads import router as uploads_router
from projecthub.routers.users import router as users_router
from projecthub.routers.webhooks import router as webhooks_router


async def directus_error_handler(request: Request, exc: DirectusError) -> JSONResponse:
    return JSONResponse(status_code=502, content={"detail": "Upstream service unavailable"})


def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(title="ProjectHub API", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(S.cors_allow_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if S.metrics_enabled:
        app.middleware("http")(metrics_middleware)
        set_app_info(app.title, app.version)
        app.get("/metrics")(metrics_endpoint)

    app.add_exception_handler(DirectusError, directus_error_handler)

    app.include_router(comments_router)
    app.include_router(reactions_router)
    app.include_router(projects_router)
    app.include_router(users_router)
    app.include_router(webhooks_router)
    app.include_router(uploads_router)
    app.include_router(misc_router)

    return app

app = create_app()
