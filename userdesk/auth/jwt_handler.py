from datetime import datetime, timedelta, timezone

import jwt

from userdesk.core import config

def create_session_token(user_id: int, expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    issued_at = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=expire_minutes),
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def read_session_token(token: str | None) -> int | None:
    """Return the user id carried by ``token``, or None if it cannot be trusted."""
    if not token:
        return None
    try:
        payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None

    try:
        return int(payload.get("sub"))
    except (TypeError, ValueError):
        return None
