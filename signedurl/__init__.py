"""Tamper-evident, time-limited, context-bound signed URLs."""
from signedurl.core.exceptions import (
    BlackholedError,
    ExpiredError,
    MismatchError,
    MissingKeyError,
    SignatureError,
    SignatureErrorKind,
    UnsupportedAlgorithmError,
)
from signedurl.services.codec import SignatureAttributes, SignedURLData
from signedurl.services.digest import Digest, FunctionDigest, HMACDigest
from signedurl.services.signer import URLSigner, create_signer

__version__ = "1.0.0"

__all__ = [
    "BlackholedError",
    "Digest",
    "ExpiredError",
    "FunctionDigest",
    "HMACDigest",
    "MismatchError",
    "MissingKeyError",
    "SignatureAttributes",
    "SignatureError",
    "SignatureErrorKind",
    "SignedURLData",
    "URLSigner",
    "UnsupportedAlgorithmError",
    "create_signer",
]
