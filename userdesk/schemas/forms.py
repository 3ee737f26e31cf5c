"""Validation for the login, signup and user-management forms.

Each form reports at most one problem at a time: the first failing field,
in declaration order. Errors are keyed by field name so templates can show
the message next to the matching input.
"""

from typing import Any, ClassVar, Mapping

from pydantic import BaseModel, Field, ValidationError, field_validator

from userdesk.core import config
from userdesk.models.user import Role

FormErrors = dict[str, str | None]

EMAIL_TAKEN = 'A user already exists with this email'


def safe_redirect(value: Any, default: str = '/') -> str:
    if not isinstance(value, str) or not value.startswith('/') or value.startswith('//'):
        return default
    return value


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ''


class CredentialsForm(BaseModel):
    error_fields: ClassVar[tuple[str, ...]] = ('email', 'password')

    email: str = ''
    password: str = ''

    class Config:
        validate_default = True
        populate_by_name = True

    @field_validator('email', mode='before')
    @classmethod
    def validate_email(cls, value: Any) -> str:
        normalized = _as_text(value).strip().lower()
        if len(normalized) <= 3 or '@' not in normalized:
            raise ValueError('Email is invalid')
        return normalized

    @field_validator('password', mode='before')
    @classmethod
    def validate_password(cls, value: Any) -> str:
        password = _as_text(value)
        if not password:
            raise ValueError('Password is required')
        if len(password) < config.MIN_PASSWORD_LENGTH:
            raise ValueError('Password is too short')
        return password


class LoginForm(CredentialsForm):
    remember: bool = False
    redirect_to: str = Field(default='/', alias='redirectTo')

    @field_validator('remember', mode='before')
    @classmethod
    def validate_remember(cls, value: Any) -> bool:
        return value is True or value == 'on'

    @field_validator('redirect_to', mode='before')
    @classmethod
    def validate_redirect_to(cls, value: Any) -> str:
        return safe_redirect(value)


class NewUserForm(CredentialsForm):
    error_fields: ClassVar[tuple[str, ...]] = ('email', 'password', 'role')

    role: str = ''

    @field_validator('role', mode='before')
    @classmethod
    def validate_role(cls, value: Any) -> str:
        role = _as_text(value).strip()
        if not role:
            raise ValueError('Role is required')
        if role not in {Role.ADMIN.value, Role.USER.value}:
            raise ValueError("Role must be either 'admin' or 'user'")
        return role


class SignupForm(NewUserForm):
    redirect_to: str = Field(default='/', alias='redirectTo')

    @field_validator('redirect_to', mode='before')
    @classmethod
    def validate_redirect_to(cls, value: Any) -> str:
        return safe_redirect(value)


def empty_errors(form_class: type[CredentialsForm]) -> FormErrors:
    return dict.fromkeys(form_class.error_fields)


def field_error(form_class: type[CredentialsForm], field: str, message: str) -> FormErrors:
    errors = empty_errors(form_class)
    errors[field] = message
    return errors


def parse_form(form_class, form_data: Mapping[str, Any]):
    """Validate ``form_data`` and return ``(form, None)`` or ``(None, errors)``."""
    try:
        return form_class.model_validate(dict(form_data)), None
    except ValidationError as exc:
        errors = empty_errors(form_class)
        for error in exc.errors():
            field = error['loc'][0] if error['loc'] else None
            if field not in errors:
                continue
            cause = error.get('ctx', {}).get('error')
            errors[field] = str(cause) if cause is not None else error['msg']
            break
        return None, errors
