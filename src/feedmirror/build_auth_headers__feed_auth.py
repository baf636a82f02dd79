from __future__ import annotations


def _auth_headers(token: str | None) -> dict[str, str]:
    """Build request headers for the feed and detail endpoints.

    Args:
        token: Auth token if available.

    Returns:
        Headers dict for the request.
    """

    headers = {"Accept": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers
