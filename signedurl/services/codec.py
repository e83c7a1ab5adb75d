"""
Signature codec: the wire format of signed URLs.

A signed URL is the original URL followed by

    expires=<ms|empty>&ip=<ip|empty>&method=<CSV|empty>&r=<nonce>&sig=<digest>

in exactly that order, ahead of any ``#fragment``. Everything before
``&sig=`` is what the digest covers, so parse() must give back that
substring byte for byte. The fragment never reaches the server and is not
signed; parse() discards it.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple
from urllib.parse import parse_qsl, quote

EXPIRES_PARAM = "expires"
IP_PARAM = "ip"
METHOD_PARAM = "method"
NONCE_PARAM = "r"
SIGNATURE_PARAM = "sig"

# Characters left readable in attribute values ("GET,POST", IPv6 addresses)
_SAFE_CHARS = ",:"

# Only a trailing, '&'-delimited sig parameter counts as the signature
_SIGNATURE_RE = re.compile(r"^(?P<unsigned>.*)&" + SIGNATURE_PARAM + r"=(?P<sig>[^&]*)$", re.DOTALL)


@dataclass
class SignatureAttributes:
    """Attributes bound into a signature."""

    nonce: str
    expires: Optional[int] = None
    method: Optional[str] = None
    ip_address: Optional[str] = None

    def as_pairs(self) -> List[Tuple[str, str]]:
        """Attributes in wire order, absent values as empty strings."""
        return [
            (EXPIRES_PARAM, str(self.expires) if self.expires else ""),
            (IP_PARAM, self.ip_address or ""),
            (METHOD_PARAM, self.method or ""),
            (NONCE_PARAM, self.nonce),
        ]

    @property
    def allowed_methods(self) -> List[str]:
        if not self.method:
            return []
        return [m.strip() for m in self.method.split(",") if m.strip()]


@dataclass(frozen=True)
class SignedURLData:
    """Result of parsing a signed URL."""

    url_without_signature: str
    attributes: SignatureAttributes
    signature: str


def serialize(attributes: SignatureAttributes) -> str:
    """Render the attributes as a query string (no leading separator)."""
    return "&".join(
        f"{name}={quote(value, safe=_SAFE_CHARS)}"
        for name, value in attributes.as_pairs()
    )


def split_fragment(url: str) -> Tuple[str, str]:
    """Split off a ``#fragment``; returns (url, fragment without the '#')."""
    base, _, fragment = url.partition("#")
    return base, fragment


def append_fragment(url: str, fragment: str) -> str:
    return f"{url}#{fragment}" if fragment else url


def append_attributes(url: str, attributes: SignatureAttributes) -> str:
    """Append the serialized attributes, starting a query string if needed."""
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{serialize(attributes)}"


def append_signature(url: str, signature: str) -> str:
    return f"{url}&{SIGNATURE_PARAM}={signature}"


def split_signature(url: str) -> Tuple[str, str]:
    """
    Split a signed URL into (unsigned part, signature).

    Returns the whole URL and an empty signature when no trailing sig
    parameter is present.
    """
    match = _SIGNATURE_RE.match(url)
    if not match:
        return url, ""
    return match.group("unsigned"), match.group("sig")


def _parse_expires(raw: str) -> Optional[int]:
    try:
        expires = int(raw)
    except ValueError:
        return None
    return expires or None


def parse(url: str) -> SignedURLData:
    """
    Recover the signed attributes, the signature and the signed substring.

    Attribute parameters are read from the unsigned part; when a name occurs
    more than once the last occurrence wins, since the signer appends its
    attributes after any query the original URL carried.

    The URL is treated as text: a fragment is dropped and the query is
    everything after the first '?', so a malformed authority never raises.
    """
    url, _ = split_fragment(url)
    unsigned, signature = split_signature(url)

    _, _, query = unsigned.partition("?")
    values = {}
    for name, value in parse_qsl(query, keep_blank_values=True):
        values[name] = value

    attributes = SignatureAttributes(
        nonce=values.get(NONCE_PARAM, ""),
        expires=_parse_expires(values.get(EXPIRES_PARAM, "")),
        method=values.get(METHOD_PARAM) or None,
        ip_address=values.get(IP_PARAM) or None,
    )

    return SignedURLData(
        url_without_signature=unsigned,
        attributes=attributes,
        signature=signature,
    )
