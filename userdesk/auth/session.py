"""Session cookie issuance and lookup."""

from urllib.parse import urlencode

from fastapi import Request, status
from fastapi.responses import RedirectResponse

from userdesk.auth import jwt_handler
from userdesk.core import config


def _set_session_cookie(response: RedirectResponse, token: str, max_age: int | None) -> None:
    response.set_cookie(
        key=config.SESSION_COOKIE_NAME,
        value=token,
        max_age=max_age,
        path="/",
        httponly=True,
        secure=config.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def _clear_session_cookie(response: RedirectResponse) -> None:
    response.delete_cookie(
        key=config.SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=config.SESSION_COOKIE_SECURE,
        samesite="lax",
    )


def create_user_session(user_id: int, remember: bool, redirect_to: str) -> RedirectResponse:
    response = RedirectResponse(url=redirect_to, status_code=status.HTTP_303_SEE_OTHER)
    if remember:
        token = jwt_handler.create_session_token(user_id, expires_minutes=config.REMEMBER_ME_DAYS * 24 * 60)
        _set_session_cookie(response, token, max_age=config.REMEMBER_ME_DAYS * 24 * 60 * 60)
    else:
        token = jwt_handler.create_session_token(user_id)
        _set_session_cookie(response, token, max_age=None)
    return response


def get_user_id(request: Request) -> int | None:
    return jwt_handler.read_session_token(request.cookies.get(config.SESSION_COOKIE_NAME))


def destroy_user_session(redirect_to: str = "/") -> RedirectResponse:
    response = RedirectResponse(url=redirect_to, status_code=status.HTTP_303_SEE_OTHER)
    _clear_session_cookie(response)
    return response


def login_redirect(redirect_to: str) -> RedirectResponse:
    return destroy_user_session(f"/login?{urlencode({'redirectTo': redirect_to})}")
