import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from userdesk.auth.dependencies import require_user
from userdesk.database import get_db
from userdesk.models.user import User
from userdesk.schemas.forms import EMAIL_TAKEN, NewUserForm, empty_errors, field_error, parse_form
from userdesk.services import user_service
from userdesk.templating import templates

router = APIRouter(tags=['users'])

logger = logging.getLogger(__name__)

INVALID_USER_ID = 'A valid user id is required.'
# Largest value a signed 64-bit INTEGER column can hold.
MAX_USER_ID = 2**63 - 1


def render_users(
    request: Request,
    db: Session,
    user: User,
    *,
    errors=None,
    values=None,
    status_code: int = 200,
):
    return templates.TemplateResponse(
        request,
        'users.html',
        {
            'user': user,
            'users': user_service.get_all_users(db),
            'errors': errors or empty_errors(NewUserForm),
            'values': values or {},
            'active': 'users',
        },
        status_code=status_code,
    )


def parse_user_id(raw_id) -> int:
    try:
        user_id = int(raw_id)
    except (TypeError, ValueError) as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=INVALID_USER_ID,
        ) from exc

    if not 1 <= user_id <= MAX_USER_ID:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=INVALID_USER_ID,
        )
    return user_id


@router.get('/users', response_class=HTMLResponse)
def list_users(
    request: Request,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    return render_users(request, db, user)


@router.post('/users', response_class=HTMLResponse)
async def manage_users(
    request: Request,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    if not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail='Only admins can manage users.',
        )

    form_data = await request.form()
    action = form_data.get('_action')

    if action == 'create':
        values = {'email': form_data.get('email', ''), 'role': form_data.get('role', '')}
        form, errors = parse_form(NewUserForm, form_data)
        if errors is None and user_service.get_user_by_email(db, form.email) is not None:
            errors = field_error(NewUserForm, 'email', EMAIL_TAKEN)
        if errors:
            return render_users(
                request,
                db,
                user,
                errors=errors,
                values=values,
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        try:
            created = user_service.create_user(db, form.email, form.password, form.role)
        except IntegrityError:
            db.rollback()
            return render_users(
                request,
                db,
                user,
                errors=field_error(NewUserForm, 'email', EMAIL_TAKEN),
                values=values,
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        logger.info('Admin %s created user %s (%s)', user.email, created.email, created.role)
        return RedirectResponse(url='/users', status_code=status.HTTP_303_SEE_OTHER)

    if action == 'delete':
        user_id = parse_user_id(form_data.get('id'))
        if user_id == user.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail='Admins cannot delete their own account.',
            )

        if not user_service.delete_user(db, user_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='User not found.',
            )

        logger.info('Admin %s deleted user %s', user.email, user_id)
        return RedirectResponse(url='/users', status_code=status.HTTP_303_SEE_OTHER)

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail='Unknown action.',
    )
