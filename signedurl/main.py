"""
Demo application for signed URLs.

GET /          returns a link to a signed /example URL (GET only)
GET /example   protected by SignedURLMiddleware, echoes the query
GET /files/x   protected by a signed_url_dependency route dependency
GET /health    unprotected

Run with:
    SIGNED_URL_KEY=change-me python -m signedurl.main
"""
import html
import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse

from signedurl import __version__
from signedurl.core.config import settings
from signedurl.core.exceptions import SignatureError
from signedurl.core.logging_config import setup_logging
from signedurl.middleware.logging_middleware import RequestLoggingMiddleware
from signedurl.middleware.signed import (
    SignedURLMiddleware,
    request_origin,
    signature_error_handler,
    signed_url_dependency,
)
from signedurl.services.signer import URLSigner, get_url_signer

logger = logging.getLogger(__name__)


def create_app(signer: Optional[URLSigner] = None, configure_logging: bool = True) -> FastAPI:
    """
    Build the demo FastAPI application.

    Args:
        signer: Signer to use (default: settings-backed singleton)
        configure_logging: Install the JSON logging handlers
    """
    if configure_logging:
        setup_logging()

    def current_signer() -> URLSigner:
        return signer or get_url_signer()

    app = FastAPI(
        title="Signed URL Demo",
        description="Issue and verify tamper-evident, expiring URLs",
        version=__version__,
        debug=settings.DEBUG,
    )

    app.add_exception_handler(SignatureError, signature_error_handler)
    app.add_middleware(SignedURLMiddleware, signer=signer, paths=["/example"])

    # Added last so it runs first (LIFO) and tags rejections with a request ID
    app.add_middleware(RequestLoggingMiddleware)

    @app.get("/", response_class=HTMLResponse)
    async def index(request: Request):
        """Return a link to a freshly signed /example URL."""
        signed_url = current_signer().sign(
            f"{request_origin(request)}{request.scope.get('root_path', '')}/example",
            method="GET",
        )
        logger.info(
            "Issued signed URL",
            extra={"event_type": "signed_url_issued", "path": "/example"}
        )
        return f'<a href="{html.escape(signed_url, quote=True)}">Signed URL</a>'

    @app.get("/example")
    async def example(request: Request):
        return dict(request.query_params)

    @app.get("/files/{name}", dependencies=[Depends(signed_url_dependency(signer))])
    async def download(name: str):
        return {"file": name}

    @app.get("/health")
    async def health():
        """Health check endpoint (no signature required)"""
        return {"status": "healthy", "version": __version__}

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        create_app(),
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL.lower()
    )
