"""Best-effort client IP extraction for requests behind proxies"""
from starlette.requests import HTTPConnection


def get_client_ip(request: HTTPConnection) -> str:
    """
    Return the client IP of a request.

    Uses the first X-Forwarded-For hop, then X-Real-IP, then the ASGI peer
    address. Returns an empty string when none is available.

    Proxy headers are client controlled unless a trusted proxy overwrites
    them; only enable IP pinning behind such a proxy or without one.
    """
    forwarded_for = request.headers.get("x-forwarded-for", "")
    first_hop = forwarded_for.split(",")[0].strip()
    if first_hop:
        return first_hop

    real_ip = request.headers.get("x-real-ip", "").strip()
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host

    return ""
