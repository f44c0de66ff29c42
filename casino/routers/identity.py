"""
Identity provider adapter.

Login and registration live outside this service; they hand the browser a
`session` cookie signed with the shared secret. This module only verifies that
cookie and yields the account id the games run against.
"""

from datetime import timedelta

from fastapi import HTTPException, Request
from itsdangerous import BadData, URLSafeTimedSerializer

from casino.config import settings

SESSION_COOKIE = "session"

serializer = URLSafeTimedSerializer(settings.security.secret_key, salt="session")


def issue_session(account_id: int, username: str = "") -> str:
    """Cookie value the login flow sets for an authenticated account."""
    return serializer.dumps({"user_id": account_id, "username": username})


def read_session(cookie: str) -> dict:
    """Verify a session cookie. Returns None when it is missing, forged or expired."""
    if not cookie:
        return None

    max_age_seconds = int(timedelta(days=settings.security.session_max_age_days).total_seconds())
    try:
        session_data = serializer.loads(cookie, max_age=max_age_seconds)
    except BadData:
        return None

    if not isinstance(session_data, dict) or not isinstance(session_data.get("user_id"), int):
        return None
    return session_data


async def get_current_account_id(request: Request) -> int:
    """FastAPI dependency: the verified account id, or 401."""
    session_data = read_session(request.cookies.get(SESSION_COOKIE))
    if not session_data:
        raise HTTPException(status_code=401, detail="Not logged in")
    return session_data["user_id"]
