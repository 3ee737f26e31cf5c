import logging

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import HTMLResponse, JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from userdesk.auth.dependencies import LoginRequired, require_user
from userdesk.auth.session import login_redirect
from userdesk.core import config
from userdesk.database import Base, engine, ensure_user_schema
from userdesk.logging_config import setup_logging
from userdesk.models.user import User
from userdesk.routes import auth_routes, user_routes
from userdesk.templating import templates

setup_logging()

app = FastAPI(title='User Desk')

logger = logging.getLogger(__name__)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        Base.metadata.create_all(bind=engine)
        ensure_user_schema()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL.')


@app.exception_handler(LoginRequired)
async def redirect_to_login(request: Request, exc: LoginRequired):
    return login_redirect(exc.redirect_to)


@app.exception_handler(SQLAlchemyError)
async def database_unavailable(request: Request, exc: SQLAlchemyError):
    logger.exception('Database error while handling %s %s', request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={'detail': 'Database unavailable. Verify DATABASE_URL.'},
    )


@app.get('/', response_class=HTMLResponse)
def index(request: Request, user: User = Depends(require_user)):
    return templates.TemplateResponse(request, 'index.html', {'user': user, 'active': None})


@app.get('/health')
def health():
    return {'status': 'User Desk Running'}


app.include_router(auth_routes.router)
app.include_router(user_routes.router)
