"""
Signed URL Middleware

Verifies signed URLs on incoming requests:
- Rebuilds the URL exactly as the signer produced it (scheme, host, raw path, raw query)
- Passes the request method, and the client IP when IP pinning is enabled
- Dispatches failures to per-kind handlers, or answers with a JSON error
  carrying the error's status code (400, 403 or 410)

Also provides a FastAPI dependency and exception handler for protecting
individual routes instead of path prefixes.
"""
import inspect
import logging
from typing import Awaitable, Callable, Dict, Iterable, Optional, Tuple, Union

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from signedurl.core.config import settings
from signedurl.core.exceptions import SignatureError, SignatureErrorKind
from signedurl.core.logging_config import sanitize_log_value
from signedurl.services.signer import URLSigner, get_url_signer
from signedurl.utils.client_ip import get_client_ip

logger = logging.getLogger(__name__)

SignatureErrorHandler = Callable[
    [Request, SignatureError], Union[Response, Awaitable[Response]]
]


def request_path(request: Request) -> str:
    """Decoded request path straight from the ASGI scope."""
    return request.scope.get("path", "")


def request_origin(request: Request) -> str:
    """
    ``scheme://host`` of the request, read as text from the ASGI scope.

    Unlike ``request.url`` this never parses the Host header, so a malformed
    one cannot raise.
    """
    scope = request.scope

    host = request.headers.get("host")
    if not host:
        server = scope.get("server")
        host = f"{server[0]}:{server[1]}" if server else ""

    return f"{scope.get('scheme', 'http')}://{host}"


def build_request_url(request: Request) -> str:
    """
    Reconstruct the URL the client requested, as the signer would have seen it.

    Path and query are taken undecoded from the ASGI scope so percent-encoding
    survives unchanged. A malformed Host header yields a URL that simply
    fails verification.
    """
    raw_path = request.scope.get("raw_path")
    if raw_path:
        path = raw_path.split(b"?", 1)[0].decode("latin-1")
    else:
        path = request_path(request)

    query = request.scope.get("query_string", b"").decode("latin-1")

    url = f"{request_origin(request)}{path}"
    if query:
        url = f"{url}?{query}"
    return url


def signature_error_response(request: Request, exc: SignatureError) -> JSONResponse:
    """Generic JSON response for a signature error."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.kind.value},
    )


async def signature_error_handler(request: Request, exc: SignatureError) -> JSONResponse:
    """FastAPI exception handler for SignatureError raised inside routes or dependencies."""
    logger.warning(
        "Signed URL rejected",
        extra={
            "event_type": "signed_url_rejected",
            "error_kind": exc.kind.value,
            "status_code": exc.status_code,
            "path": sanitize_log_value(request_path(request)),
        }
    )
    return signature_error_response(request, exc)


def signed_url_dependency(
    signer: Optional[URLSigner] = None,
    use_ip_address: Optional[bool] = None,
) -> Callable[[Request], Awaitable[bool]]:
    """
    Build a FastAPI dependency that verifies the current request URL.

    SignatureError propagates to signature_error_handler.

    Args:
        signer: Signer to verify with (default: settings-backed singleton)
        use_ip_address: Pin verification to the client IP
                        (default: settings.SIGNED_URL_USE_IP_ADDRESS)
    """
    async def verify_request(request: Request) -> bool:
        pin_ip = settings.SIGNED_URL_USE_IP_ADDRESS if use_ip_address is None else use_ip_address
        return (signer or get_url_signer()).verify(
            build_request_url(request),
            method=request.method,
            ip_address=get_client_ip(request) if pin_ip else None,
        )

    return verify_request


require_signed_url = signed_url_dependency()


class SignedURLMiddleware(BaseHTTPMiddleware):
    """
    Middleware that rejects requests whose signed URL does not verify.

    For each request under one of the protected path prefixes:
    1. Rebuild the full request URL
    2. Verify it with the signer (method, and client IP if enabled)
    3. On failure call the handler registered for the error kind, or return
       the generic JSON error response
    """

    def __init__(
        self,
        app,
        signer: Optional[URLSigner] = None,
        use_ip_address: Optional[bool] = None,
        paths: Optional[Iterable[str]] = None,
        blackholed: Optional[SignatureErrorHandler] = None,
        expired: Optional[SignatureErrorHandler] = None,
        mismatch: Optional[SignatureErrorHandler] = None,
        handlers: Optional[Dict[SignatureErrorKind, SignatureErrorHandler]] = None,
    ):
        """
        Initialize the signed URL middleware.

        Args:
            app: The ASGI application
            signer: Signer to verify with (default: settings-backed singleton)
            use_ip_address: Pin verification to the client IP
                            (default: settings.SIGNED_URL_USE_IP_ADDRESS)
            paths: Path prefixes to protect; every path when None
            blackholed: Handler for IP/method rejections
            expired: Handler for expired signatures
            mismatch: Handler for signature mismatches
            handlers: Handlers keyed by error kind (merged with the above)
        """
        super().__init__(app)
        self.signer = signer
        self.use_ip_address = (
            settings.SIGNED_URL_USE_IP_ADDRESS if use_ip_address is None else use_ip_address
        )
        self.paths: Optional[Tuple[str, ...]] = tuple(paths) if paths is not None else None

        self.handlers: Dict[SignatureErrorKind, SignatureErrorHandler] = dict(handlers or {})
        for kind, handler in (
            (SignatureErrorKind.BLACKHOLED, blackholed),
            (SignatureErrorKind.EXPIRED, expired),
            (SignatureErrorKind.MISMATCH, mismatch),
        ):
            if handler is not None:
                self.handlers[kind] = handler

    def is_protected_path(self, path: str) -> bool:
        if self.paths is None:
            return True
        for prefix in self.paths:
            base = prefix.rstrip("/")
            if path == base or path.startswith(base + "/"):
                return True
        return False

    async def dispatch(self, request: Request, call_next):
        if not self.is_protected_path(request_path(request)):
            return await call_next(request)

        signer = self.signer or get_url_signer()
        ip_address = get_client_ip(request) if self.use_ip_address else None

        try:
            signer.verify(
                build_request_url(request),
                method=request.method,
                ip_address=ip_address,
            )
        except SignatureError as exc:
            logger.warning(
                "Signed URL rejected",
                extra={
                    "event_type": "signed_url_rejected",
                    "error_kind": exc.kind.value,
                    "status_code": exc.status_code,
                    "method": request.method,
                    "path": sanitize_log_value(request_path(request)),
                }
            )
            return await self._handle_error(request, exc)

        logger.debug(
            "Signed URL verified",
            extra={
                "event_type": "signed_url_verified",
                "method": request.method,
                "path": sanitize_log_value(request_path(request)),
            }
        )
        return await call_next(request)

    async def _handle_error(self, request: Request, exc: SignatureError) -> Response:
        handler = self.handlers.get(exc.kind)
        if handler is None:
            return signature_error_response(request, exc)

        result = handler(request, exc)
        if inspect.isawaitable(result):
            result = await result
        return result
