"""
HTTP front end for the secret cache.

Routes:
  GET    /health
  POST   /api/v1/containers                    {"name"}
  POST   /api/v1/secrets                       {"container", "name", "payload"}
  GET    /api/v1/secrets/{container}/{name}    -> raw payload bytes
  DELETE /api/v1/secrets/{container}/{name}

Start:
  barbican-cache serve
"""

import logging

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel

from barbican_cache import __version__
from barbican_cache.secrets.domains.errors import SecretCacheError
from barbican_cache.secrets.workflows.secret_operations import SecretService

logger = logging.getLogger(__name__)


class CreateContainerRequest(BaseModel):
    name: str


class UploadSecretRequest(BaseModel):
    container: str
    name: str
    payload: str


def get_service(request: Request) -> SecretService:
    return request.app.state.service


def create_app(service: SecretService) -> FastAPI:
    """Build the FastAPI app around an already loaded SecretService."""
    app = FastAPI(
        title="Barbican Secret Cache",
        description="Name-based access to Barbican secrets through a two-tier reference cache.",
        version=__version__,
    )
    app.state.service = service

    @app.exception_handler(SecretCacheError)
    async def secret_cache_error_handler(request: Request, exc: SecretCacheError):
        logger.info(f"{request.method} {request.url.path} -> {exc.status}: {exc.detail}")
        return JSONResponse(status_code=exc.status, content={"error": exc.message})

    @app.get("/health", response_class=PlainTextResponse)
    def health():
        return "OK"

    @app.post("/api/v1/containers", response_class=PlainTextResponse)
    def create_container(body: CreateContainerRequest, svc: SecretService = Depends(get_service)):
        svc.create_container(body.name)
        return "OK"

    @app.post("/api/v1/secrets", response_class=PlainTextResponse)
    def upload_secret(body: UploadSecretRequest, svc: SecretService = Depends(get_service)):
        svc.upload_secret(body.container, body.name, body.payload.encode("utf-8"))
        return "OK"

    @app.get("/api/v1/secrets/{container}/{name}")
    def get_secret(container: str, name: str, svc: SecretService = Depends(get_service)):
        payload = svc.get_secret(container, name)
        return Response(content=payload, media_type="application/octet-stream")

    @app.delete("/api/v1/secrets/{container}/{name}", response_class=PlainTextResponse)
    def delete_secret(container: str, name: str, svc: SecretService = Depends(get_service)):
        svc.delete_secret(container, name)
        return "OK"

    return app
