"""Create a user from the command line, e.g. to bootstrap the first admin.

Usage:
    python -m userdesk.create_user admin@example.com 'a long password' --role admin
"""
import argparse
import sys

from userdesk.database import Base, SessionLocal, engine
from userdesk.models.user import Role
from userdesk.schemas.forms import EMAIL_TAKEN, NewUserForm, parse_form
from userdesk.services import user_service


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Create a user account.")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument(
        "--role",
        default=Role.USER.value,
        choices=[role.value for role in Role],
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    form, errors = parse_form(NewUserForm, {"email": args.email, "password": args.password, "role": args.role})
    if errors:
        for field, message in errors.items():
            if message:
                print(f"{field}: {message}", file=sys.stderr)
        return 1

    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        if user_service.get_user_by_email(db, form.email) is not None:
            print(f"email: {EMAIL_TAKEN}", file=sys.stderr)
            return 1
        user = user_service.create_user(db, form.email, form.password, form.role)
        print(f"Created {user.role} {user.email} (id {user.id})")
    finally:
        db.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
