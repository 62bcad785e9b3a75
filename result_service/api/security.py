"""API key check for the /v1 routes."""

import hashlib
import hmac

from fastapi import Depends, Header, HTTPException, status

from result_service.config import Settings, get_settings


def hash_api_key(secret_key: str, api_key: str) -> str:
    """Hex HMAC-SHA512 of ``api_key`` keyed with ``secret_key``."""
    return hmac.new(secret_key.encode(), api_key.encode(), hashlib.sha512).hexdigest()


def is_valid_api_key(api_key: str, secret_key: str, hashed_api_keys: list[str]) -> bool:
    hashed = hash_api_key(secret_key, api_key)
    return any(hmac.compare_digest(hashed, known) for known in hashed_api_keys)


async def verify_api_key(
    authorization: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """
    Reject requests whose Authorization header is not a known API key.

    Raises:
        HTTPException: 401 if the header is missing or the key is unknown
    """
    if not authorization or not is_valid_api_key(
        authorization, settings.secret_key, settings.api_key_hashes
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid api key",
        )
