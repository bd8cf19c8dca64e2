from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from cardintake.core.config import get_settings


class InvalidSignatureError(ValueError):
    """Raised when a file token is malformed, expired or issued for another path."""


def sign_storage_path(storage_path: str, expires_in: int | None = None) -> str:
    settings = get_settings()
    ttl = expires_in if expires_in is not None else settings.signed_url_ttl_seconds
    expire = datetime.now(timezone.utc) + timedelta(seconds=ttl)
    payload = {"path": storage_path, "exp": expire}
    return jwt.encode(payload, settings.signing_secret, algorithm=settings.signing_algorithm)


def verify_storage_token(token: str, storage_path: str) -> None:
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.signing_secret, algorithms=[settings.signing_algorithm])
    except JWTError as exc:
        raise InvalidSignatureError("Invalid or expired token") from exc
    if claims.get("path") != storage_path:
        raise InvalidSignatureError("Token does not match the requested file")
