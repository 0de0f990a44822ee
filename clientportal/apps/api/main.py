from __future__ import annotations

from uuid import uuid4

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.openapi.utils import get_openapi
from starlette.exceptions import HTTPException as StarletteHTTPException

from clientportal.apps.api.errors import (
    http_exception_handler,
    portal_exception_handler,
    starlette_http_exception_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from clientportal.apps.api.routes.activities import router as activities_router
from clientportal.apps.api.routes.auth import router as auth_router
from clientportal.apps.api.routes.clients import router as clients_router
from clientportal.apps.api.routes.estimates import router as estimates_router
from clientportal.apps.api.routes.files import router as files_router
from clientportal.apps.api.routes.health import router as health_router
from clientportal.apps.api.routes.projects import router as projects_router
from clientportal.apps.api.routes.public import router as public_router
from clientportal.apps.api.routes.tasks import router as tasks_router
from clientportal.core.config import get_settings
from clientportal.core.errors import PortalError
from clientportal.core.logging import configure_logging
from clientportal.persistence.storage import Storage, build_storage
from clientportal.services.blobs import BlobStore, LocalBlobStore


API_PREFIX = "/api"


def create_app(*, storage: Storage | None = None, blob_store: BlobStore | None = None) -> FastAPI:
    configure_logging()
    settings = get_settings()
    app = FastAPI(title="ClientPortal API")
    # Tests inject their own backends; otherwise settings pick them once here.
    app.state.storage = storage if storage is not None else build_storage(settings)
    app.state.blob_store = blob_store if blob_store is not None else LocalBlobStore.from_settings(settings)

    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):  # type: ignore[override]
        # Preserve incoming request IDs or assign a new one for traceability.
        request_id = request.headers.get("X-Request-Id") or str(uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers.setdefault("X-Request-Id", request_id)
        return response

    @app.exception_handler(PortalError)
    async def _portal_exception_handler(request: Request, exc: PortalError):
        return await portal_exception_handler(request, exc)

    @app.exception_handler(StarletteHTTPException)
    async def _starlette_http_exception_handler(request: Request, exc: StarletteHTTPException):
        return await starlette_http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def _unhandled_exception_handler(request: Request, exc: Exception):
        return await unhandled_exception_handler(request, exc)

    @app.exception_handler(RequestValidationError)
    async def _validation_exception_handler(request: Request, exc: RequestValidationError):
        return await validation_exception_handler(request, exc)

    @app.exception_handler(HTTPException)
    async def _http_exception_handler(request: Request, exc: HTTPException):
        return await http_exception_handler(request, exc)

    app.include_router(health_router, prefix=API_PREFIX)
    app.include_router(auth_router, prefix=API_PREFIX)
    app.include_router(clients_router, prefix=API_PREFIX)
    app.include_router(projects_router, prefix=API_PREFIX)
    app.include_router(tasks_router, prefix=API_PREFIX)
    app.include_router(files_router, prefix=API_PREFIX)
    app.include_router(estimates_router, prefix=API_PREFIX)
    app.include_router(activities_router, prefix=API_PREFIX)
    # Anonymous share-link views; the token is the credential.
    app.include_router(public_router, prefix=API_PREFIX)

    def custom_openapi() -> dict:
        # Document both the session cookie and bearer forms of the owner credential.
        if app.openapi_schema:
            return app.openapi_schema
        schema = get_openapi(title="ClientPortal API", version="1.0.0", routes=app.routes)
        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes["BearerAuth"] = {"type": "http", "scheme": "bearer"}
        security_schemes["SessionCookie"] = {
            "type": "apiKey",
            "in": "cookie",
            "name": settings.session_cookie_name,
        }
        public_paths = {
            f"{API_PREFIX}/health",
            f"{API_PREFIX}/register",
            f"{API_PREFIX}/login",
            f"{API_PREFIX}/public/projects/{{token}}",
        }
        for path, operations in schema.get("paths", {}).items():
            if path in public_paths:
                continue
            for operation in operations.values():
                operation.setdefault("security", [{"BearerAuth": []}, {"SessionCookie": []}])
        app.openapi_schema = schema
        return app.openapi_schema

    app.openapi = custom_openapi  # type: ignore[method-assign]

    return app


app = create_app()
