"""
Digest capability used by the URL signer.

A digest turns the canonical URL string into the signature value. The
built-in variant is HMAC over a hashlib algorithm; callers may pass any
object with a ``compute(message) -> str`` method, or a plain function.
"""

import hashlib
import hmac
from typing import Callable, FrozenSet, Optional, Protocol, Union, runtime_checkable

from signedurl.core.exceptions import MissingKeyError, UnsupportedAlgorithmError

DEFAULT_ALGORITHM = "sha256"

HashFunc = Callable[[str], str]


@runtime_checkable
class Digest(Protocol):
    """Anything that can compute a signature string for a message."""

    def compute(self, message: str) -> str:
        ...


def supported_algorithms() -> FrozenSet[str]:
    """
    Names of the algorithms usable for HMAC in this interpreter.

    SHAKE algorithms are excluded: they have no fixed digest size and
    cannot back an HMAC.
    """
    return frozenset(
        name.lower()
        for name in hashlib.algorithms_available
        if not name.lower().startswith("shake")
    )


def is_supported_algorithm(algorithm: str) -> bool:
    return isinstance(algorithm, str) and algorithm.lower() in supported_algorithms()


class HMACDigest:
    """
    HMAC digest over a named hashlib algorithm.

    The key is used both as the HMAC key and appended to the message, so the
    signature still depends on the key if the primitive is weak or misused.
    Key and algorithm are checked on every compute() call rather than at
    construction, key first.
    """

    def __init__(self, key: Optional[str], algorithm: str = DEFAULT_ALGORITHM):
        self._key = key
        self.algorithm = algorithm

    def compute(self, message: str) -> str:
        if not self._key:
            raise MissingKeyError()
        if not is_supported_algorithm(self.algorithm):
            raise UnsupportedAlgorithmError()

        key_bytes = self._key.encode("utf-8")
        try:
            mac = hmac.new(key_bytes, digestmod=self.algorithm.lower())
        except (ValueError, TypeError) as e:
            # Listed by hashlib but refused by the backend (e.g. FIPS mode)
            raise UnsupportedAlgorithmError() from e

        mac.update(message.encode("utf-8"))
        mac.update(key_bytes)
        return mac.hexdigest()

    def __repr__(self) -> str:
        return f"HMACDigest(algorithm={self.algorithm!r})"


class FunctionDigest:
    """Adapts a caller supplied ``str -> str`` function; key handling is up to it."""

    def __init__(self, func: HashFunc):
        self._func = func

    def compute(self, message: str) -> str:
        return self._func(message)

    def __repr__(self) -> str:
        name = getattr(self._func, "__name__", type(self._func).__name__)
        return f"FunctionDigest({name})"


def resolve_digest(
    digest: Union[str, HashFunc, Digest, None],
    key: Optional[str],
) -> Digest:
    """
    Turn the ``digest`` option of the signer into a Digest.

    Args:
        digest: Algorithm name, Digest object, or function (None means sha256)
        key: Secret key, only used by the named-algorithm variant

    Returns:
        Digest implementation
    """
    if digest is None:
        return HMACDigest(key, DEFAULT_ALGORITHM)
    if isinstance(digest, str):
        return HMACDigest(key, digest)
    if isinstance(digest, Digest):
        return digest
    if callable(digest):
        return FunctionDigest(digest)
    raise TypeError(
        f"digest must be an algorithm name, a Digest or a callable, got {type(digest).__name__}"
    )
