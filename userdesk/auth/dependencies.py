from fastapi import Depends, Request
from sqlalchemy.orm import Session

from userdesk.auth.session import get_user_id
from userdesk.database import get_db
from userdesk.models.user import User
from userdesk.services import user_service


class LoginRequired(Exception):
    """Raised when a page needs a signed-in user and there is none."""

    def __init__(self, redirect_to: str):
        super().__init__(redirect_to)
        self.redirect_to = redirect_to


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> User | None:
    user_id = get_user_id(request)
    if user_id is None:
        return None
    return user_service.get_user_by_id(db, user_id)


def require_user(request: Request, user: User | None = Depends(get_optional_user)) -> User:
    if user is None:
        raise LoginRequired(request.url.path)
    return user
