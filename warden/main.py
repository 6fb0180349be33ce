from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI
from sqladmin import Admin

from warden.admin.auth import AdminAuth
from warden.admin.router import router as admin_router
from warden.admin.views import UserAdmin
from warden.auth.oauth_router import router as oauth_router
from warden.auth.providers import get_provider_registry
from warden.auth.router import router as auth_router
from warden.core.cors import add_cors_middleware
from warden.core.email import init_resend
from warden.core.exception_handlers import register_exception_handlers
from warden.core.http import close_oauth_client
from warden.core.logging import configure_logging
from warden.core.request_logging import add_request_logging_middleware
from warden.db.engine import engine, init_db
from warden.health.router import router as health_router
from warden.user.router import router as user_router

configure_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    init_db()
    init_resend()
    get_provider_registry()
    yield
    await close_oauth_client()


app = FastAPI(title="Warden", version="0.1.0", lifespan=lifespan)

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(user_router)
api_router.include_router(admin_router)
# Last: /api/auth/{provider} would otherwise shadow the fixed auth paths.
api_router.include_router(oauth_router)

app.include_router(api_router)

add_request_logging_middleware(app)
add_cors_middleware(app)
register_exception_handlers(app)

# Mount SQLAdmin UI at /admin (SQLAdmin enables sessions via auth backend secret)
admin = Admin(
    app=app,
    engine=engine,
    authentication_backend=AdminAuth(),
)
admin.add_view(UserAdmin)
