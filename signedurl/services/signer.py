"""
URL Signer: produces and verifies signed URLs.

A signed URL binds the original URL to an optional expiry, an optional set
of allowed HTTP methods, an optional client IP and a random nonce. The
digest covers all of it, so any change to the URL is detected on verify.

Usage:
    from signedurl.services.signer import URLSigner

    signer = URLSigner(key="secret", ttl=10)
    url = signer.sign("https://example.com/files/report.pdf", method="GET")
    signer.verify(url, method="GET")  # True, or raises a SignatureError
"""

import hmac
import logging
import secrets
import time
from typing import Optional, Sequence, Union

from signedurl.core.config import settings
from signedurl.core.exceptions import BlackholedError, ExpiredError, MismatchError
from signedurl.services import codec
from signedurl.services.codec import SignatureAttributes, SignedURLData
from signedurl.services.digest import DEFAULT_ALGORITHM, Digest, HashFunc, resolve_digest

logger = logging.getLogger(__name__)

# Default time to live in minutes
DEFAULT_TTL_MINUTES = 30

# Random bytes per nonce
NONCE_BYTES = 16

_MS_PER_MINUTE = 60 * 1000


def current_millis() -> int:
    """Current wall clock time in epoch milliseconds."""
    return int(time.time() * 1000)


def generate_nonce() -> str:
    """URL-safe base64 nonce without padding, from the OS CSPRNG."""
    return secrets.token_urlsafe(NONCE_BYTES)


class URLSigner:
    """
    Signs URLs and verifies signed URLs.

    Instances hold only immutable configuration and are safe to share
    between threads and requests.

    Attributes:
        ttl: Default time to live in minutes (0 disables it)
        digest: Digest used to compute signatures
    """

    def __init__(
        self,
        key: Optional[str] = None,
        ttl: int = DEFAULT_TTL_MINUTES,
        digest: Union[str, HashFunc, Digest] = DEFAULT_ALGORITHM,
    ):
        """
        Initialize the signer.

        Args:
            key: Secret key. Required by the built-in HMAC digest; checked when
                 a signature is computed, not here.
            ttl: Default time to live in minutes. When non-zero it takes
                 precedence over per-call ttl/expires.
            digest: hashlib algorithm name, a Digest, or a ``str -> str``
                    function used verbatim.
        """
        if ttl is None:
            ttl = 0
        if ttl < 0:
            raise ValueError("ttl must be zero or a positive number of minutes")

        self._key = key
        self.ttl = ttl
        self.digest = resolve_digest(digest, key)

        logger.debug(
            "URLSigner initialized",
            extra={"ttl_minutes": ttl, "digest": repr(self.digest)}
        )

    def _resolve_expires(self, ttl: Optional[int], expires: Optional[int]) -> Optional[int]:
        if self.ttl:
            return current_millis() + self.ttl * _MS_PER_MINUTE
        if ttl:
            return current_millis() + ttl * _MS_PER_MINUTE
        if expires:
            return int(expires)
        return None

    @staticmethod
    def _resolve_method(method: Union[str, Sequence[str], None]) -> Optional[str]:
        if not method:
            return None
        if not isinstance(method, str):
            method = ",".join(method)
        return method.upper()

    def sign(
        self,
        url: str,
        method: Union[str, Sequence[str], None] = None,
        ttl: Optional[int] = None,
        expires: Optional[int] = None,
        ip_address: Optional[str] = None,
    ) -> str:
        """
        Sign a URL.

        Args:
            url: URL to sign (may already carry a query string and a fragment)
            method: Allowed HTTP method or list of methods
            ttl: Time to live in minutes, used when the signer has no default ttl
            expires: Absolute expiry in epoch milliseconds, used when no ttl applies
            ip_address: Client IP the URL is pinned to

        Returns:
            The signed URL

        Raises:
            MissingKeyError: No key configured for the built-in digest
            UnsupportedAlgorithmError: The configured algorithm is unavailable
        """
        attributes = SignatureAttributes(
            nonce=generate_nonce(),
            expires=self._resolve_expires(ttl, expires),
            method=self._resolve_method(method),
            ip_address=ip_address or None,
        )

        # The fragment stays client side, so it goes after sig and is not signed
        base, fragment = codec.split_fragment(url)
        unsigned = codec.append_attributes(base, attributes)
        signature = self.digest.compute(unsigned)
        return codec.append_fragment(codec.append_signature(unsigned, signature), fragment)

    def extract_url_data(self, url: str) -> SignedURLData:
        """Parse a signed URL into its attributes, signature and signed part."""
        return codec.parse(url)

    def _is_valid_signature(self, unsigned: str, signature: str) -> bool:
        expected = self.digest.compute(unsigned)
        return hmac.compare_digest(expected.encode("utf-8"), signature.encode("utf-8"))

    def verify(
        self,
        url: str,
        method: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> bool:
        """
        Verify a signed URL against the context of the incoming request.

        Checks run in a fixed order and the first failure is raised: IP
        binding, allowed method, expiry, then the digest itself.

        Args:
            url: The full signed URL as received
            method: HTTP method of the incoming request
            ip_address: Client IP of the incoming request

        Returns:
            True when the URL is valid

        Raises:
            BlackholedError: IP or method does not match the signed constraints
            ExpiredError: The expiry timestamp has passed
            MismatchError: The signature does not match the URL
            MissingKeyError, UnsupportedAlgorithmError: Misconfigured signer
        """
        data = codec.parse(url)
        attributes = data.attributes

        if attributes.ip_address and (not ip_address or attributes.ip_address != ip_address):
            raise BlackholedError()

        if attributes.method and (not method or method.upper() not in attributes.allowed_methods):
            raise BlackholedError()

        if attributes.expires and attributes.expires < current_millis():
            raise ExpiredError()

        if not self._is_valid_signature(data.url_without_signature, data.signature):
            raise MismatchError()

        return True


def create_signer(
    key: Optional[str] = None,
    ttl: int = DEFAULT_TTL_MINUTES,
    digest: Union[str, HashFunc, Digest] = DEFAULT_ALGORITHM,
) -> URLSigner:
    """Shorthand for URLSigner(...)."""
    return URLSigner(key=key, ttl=ttl, digest=digest)


# Global singleton instance
_url_signer: Optional[URLSigner] = None


def get_url_signer() -> URLSigner:
    """Get the global URLSigner built from settings."""
    global _url_signer
    if _url_signer is None:
        _url_signer = URLSigner(
            key=settings.SIGNED_URL_KEY,
            ttl=settings.SIGNED_URL_TTL,
            digest=settings.SIGNED_URL_HASH,
        )
    return _url_signer


def reset_url_signer() -> None:
    """Reset the singleton instance (useful for testing)."""
    global _url_signer
    _url_signer = None
