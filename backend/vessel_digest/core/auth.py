import hmac

from fastapi import HTTPException, Request

from vessel_digest.core.config import settings


def require_api_key(request: Request) -> None:
    """Check the Bearer API key in the Authorization header.

    When no API_KEY is configured every request is accepted, which keeps
    local development and tests free of credentials.
    """
    if not settings.API_KEY:
        return

    auth_header = request.headers.get("Authorization")
    if not auth_header:
        raise HTTPException(status_code=401, detail="API key is required")

    if not auth_header.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Invalid authorization header format")

    raw_key = auth_header[7:]
    if not hmac.compare_digest(raw_key, settings.API_KEY):
        raise HTTPException(status_code=401, detail="Invalid API key")
