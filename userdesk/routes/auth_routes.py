import logging

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from userdesk.auth.dependencies import get_optional_user
from userdesk.auth.session import create_user_session, destroy_user_session
from userdesk.database import get_db
from userdesk.models.user import User
from userdesk.schemas.forms import (
    EMAIL_TAKEN,
    LoginForm,
    SignupForm,
    empty_errors,
    field_error,
    parse_form,
    safe_redirect,
)
from userdesk.services import user_service
from userdesk.templating import templates

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid email or password'


def render_login(request: Request, *, redirect_to: str, errors=None, values=None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        'login.html',
        {
            'errors': errors or empty_errors(LoginForm),
            'values': values or {},
            'redirect_to': redirect_to,
            'query_string': request.url.query,
        },
        status_code=status_code,
    )


def render_signup(request: Request, *, redirect_to: str, errors=None, values=None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        'signup.html',
        {
            'errors': errors or empty_errors(SignupForm),
            'values': values or {},
            'redirect_to': redirect_to,
        },
        status_code=status_code,
    )


@router.get('/login', response_class=HTMLResponse)
def login_page(
    request: Request,
    redirect_to: str = Query(default='/', alias='redirectTo'),
    user: User | None = Depends(get_optional_user),
):
    if user is not None:
        return RedirectResponse(url='/', status_code=status.HTTP_303_SEE_OTHER)
    return render_login(request, redirect_to=safe_redirect(redirect_to))


@router.post('/login', response_class=HTMLResponse)
async def login(request: Request, db: Session = Depends(get_db)):
    form_data = await request.form()
    values = {'email': form_data.get('email', ''), 'remember': form_data.get('remember') == 'on'}
    redirect_to = safe_redirect(form_data.get('redirectTo'))

    form, errors = parse_form(LoginForm, form_data)
    if errors:
        return render_login(
            request,
            redirect_to=redirect_to,
            errors=errors,
            values=values,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    user = user_service.verify_login(db, form.email, form.password)
    if user is None:
        logger.info('Failed login attempt for %s', form.email)
        return render_login(
            request,
            redirect_to=redirect_to,
            errors=field_error(LoginForm, 'email', INVALID_CREDENTIALS),
            values=values,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    logger.info('User %s logged in', user.email)
    return create_user_session(user.id, remember=form.remember, redirect_to=form.redirect_to)


@router.get('/signup', response_class=HTMLResponse)
def signup_page(
    request: Request,
    redirect_to: str = Query(default='/', alias='redirectTo'),
    user: User | None = Depends(get_optional_user),
):
    if user is not None:
        return RedirectResponse(url='/', status_code=status.HTTP_303_SEE_OTHER)
    return render_signup(request, redirect_to=safe_redirect(redirect_to))


@router.post('/signup', response_class=HTMLResponse)
async def signup(request: Request, db: Session = Depends(get_db)):
    form_data = await request.form()
    values = {'email': form_data.get('email', ''), 'role': form_data.get('role', '')}
    redirect_to = safe_redirect(form_data.get('redirectTo'))

    form, errors = parse_form(SignupForm, form_data)
    if errors is None and user_service.get_user_by_email(db, form.email) is not None:
        errors = field_error(SignupForm, 'email', EMAIL_TAKEN)
    if errors:
        return render_signup(
            request,
            redirect_to=redirect_to,
            errors=errors,
            values=values,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    try:
        user = user_service.create_user(db, form.email, form.password, form.role)
    except IntegrityError:
        db.rollback()
        return render_signup(
            request,
            redirect_to=redirect_to,
            errors=field_error(SignupForm, 'email', EMAIL_TAKEN),
            values=values,
            status_code=status.HTTP_400_BAD_REQUEST,
        )

    logger.info('User %s signed up with role %s', user.email, user.role)
    return create_user_session(user.id, remember=False, redirect_to=form.redirect_to)


@router.post('/logout')
def logout():
    return destroy_user_session('/')
