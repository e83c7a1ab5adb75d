"""
Signature error taxonomy.

Every failure the signer can report is a SignatureError tagged with a
SignatureErrorKind. The kind fixes the HTTP status code and default message,
so HTTP-facing callers can map errors to responses without isinstance chains.
The subclasses only pin the kind, which keeps `except ExpiredError:` working.
"""
from enum import Enum
from typing import Dict, Optional


class SignatureErrorKind(str, Enum):
    """Closed set of signature failure kinds."""

    MISSING_KEY = "missing_key"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
    BLACKHOLED = "blackholed"
    EXPIRED = "expired"
    MISMATCH = "mismatch"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]

    @property
    def default_message(self) -> str:
        return _MESSAGES[self]


_STATUS_CODES: Dict[SignatureErrorKind, int] = {
    SignatureErrorKind.MISSING_KEY: 400,
    SignatureErrorKind.UNSUPPORTED_ALGORITHM: 400,
    SignatureErrorKind.BLACKHOLED: 403,
    SignatureErrorKind.EXPIRED: 410,
    SignatureErrorKind.MISMATCH: 403,
}

_MESSAGES: Dict[SignatureErrorKind, str] = {
    SignatureErrorKind.MISSING_KEY: "Please provide the secret key.",
    SignatureErrorKind.UNSUPPORTED_ALGORITHM: "This algorithm is not supported.",
    SignatureErrorKind.BLACKHOLED: "The request has been black-holed.",
    SignatureErrorKind.EXPIRED: "URL signature expired.",
    SignatureErrorKind.MISMATCH: "URL signature mismatch.",
}


class SignatureError(Exception):
    """
    Error raised while deriving or verifying a URL signature.

    Attributes:
        kind: Which check failed
        message: Human readable message (defaults to the kind's message)
    """

    def __init__(self, kind: SignatureErrorKind, message: Optional[str] = None):
        self.kind = SignatureErrorKind(kind)
        self.message = message or self.kind.default_message
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        """HTTP status code associated with this error kind."""
        return self.kind.status_code

    def to_dict(self) -> dict:
        return {
            "code": self.kind.value,
            "status": self.status_code,
            "message": self.message,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value!r}, message={self.message!r})"


class MissingKeyError(SignatureError):
    """A digest was requested but no secret key is configured."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(SignatureErrorKind.MISSING_KEY, message)


class UnsupportedAlgorithmError(SignatureError):
    """The named digest algorithm is not available in hashlib."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(SignatureErrorKind.UNSUPPORTED_ALGORITHM, message)


class BlackholedError(SignatureError):
    """The request context failed the IP binding or method allow check."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(SignatureErrorKind.BLACKHOLED, message)


class ExpiredError(SignatureError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(SignatureErrorKind.EXPIRED, message)


class MismatchError(SignatureError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(SignatureErrorKind.MISMATCH, message)
