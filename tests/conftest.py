import inspect
import os

# Settings are read at import time (engine, logging), so the environment
# must be in place before anything from warden is imported.
os.environ.setdefault("ENV_NAME", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-0123456789abcdef")
os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")
os.environ.setdefault("LOG_REQUESTS", "false")

import anyio  # noqa: E402
import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

from warden.auth.authenticator import (  # noqa: E402
    CredentialAuthenticator,
    get_credential_authenticator,
)
from warden.auth.linker import IdentityLinker, get_identity_linker  # noqa: E402
from warden.auth.passwords import hash_password  # noqa: E402
from warden.auth.providers import (  # noqa: E402
    ProviderRegistry,
    get_provider_registry,
)
from warden.auth.recovery import (  # noqa: E402
    RecoveryTokenManager,
    get_recovery_token_manager,
)
from warden.auth.second_factor import (  # noqa: E402
    SecondFactorManager,
    get_second_factor_manager,
)
from warden.auth.tokens import TokenIssuer, get_token_issuer  # noqa: E402
from warden.core.settings import Settings, get_settings  # noqa: E402
from warden.db.engine import get_session  # noqa: E402
from warden.main import app  # noqa: E402
from warden.user.models import User, UserRole  # noqa: E402
from warden.user.repository import UserRepository  # noqa: E402

TEST_JWT_SECRET = "test-jwt-secret-0123456789abcdef"
TEST_PASSWORD = "secret123"


def pytest_configure(config: pytest.Config) -> None:
    # Tests use @pytest.mark.asyncio, but we intentionally rely on anyio.
    config.addinivalue_line(
        "markers",
        "asyncio: run async tests using anyio (project-local hook)",
    )


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Run @pytest.mark.asyncio tests with anyio.

    This avoids adding an external pytest-asyncio dependency.
    """
    if pyfuncitem.get_closest_marker("asyncio") is None:
        return None

    test_func = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_func):
        return None

    funcargs = {
        name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
    }

    async def _run_async_test() -> None:
        await test_func(**funcargs)

    anyio.run(_run_async_test)
    return True


def make_settings(**overrides) -> Settings:
    """Settings for tests; Google and GitHub are configured, others are not."""
    values = {
        "env_name": "test",
        "database_url": "sqlite://",
        "jwt_secret": TEST_JWT_SECRET,
        "session_secret_key": "test-session-secret",
        "public_backend_url": "http://api.test",
        "client_url": "http://client.test",
        "google_client_id": "google-client-id",
        "google_client_secret": "google-client-secret",
        "github_client_id": "github-client-id",
        "github_client_secret": "github-client-secret",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="repo")
def repo_fixture(session: Session) -> UserRepository:
    return UserRepository(session)


@pytest.fixture(name="test_settings")
def test_settings_fixture() -> Settings:
    return make_settings()


@pytest.fixture(name="tokens")
def tokens_fixture() -> TokenIssuer:
    return TokenIssuer(secret=TEST_JWT_SECRET)


@pytest.fixture(name="second_factor")
def second_factor_fixture() -> SecondFactorManager:
    return SecondFactorManager(issuer="Warden")


@pytest.fixture(name="authenticator")
def authenticator_fixture(tokens, second_factor) -> CredentialAuthenticator:
    return CredentialAuthenticator(
        tokens, second_factor, reserved_email_domain="placeholder.com"
    )


@pytest.fixture(name="recovery")
def recovery_fixture() -> RecoveryTokenManager:
    return RecoveryTokenManager()


@pytest.fixture(name="linker")
def linker_fixture(tokens) -> IdentityLinker:
    return IdentityLinker(tokens)


@pytest.fixture(name="registry")
def registry_fixture(test_settings) -> ProviderRegistry:
    return ProviderRegistry.from_settings(test_settings)


def _create_user(session: Session, **fields) -> User:
    user = User(**fields)
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture(name="test_user")
def test_user_fixture(session: Session) -> User:
    """A verified local account with password TEST_PASSWORD."""
    return _create_user(
        session,
        username="alice",
        email="alice@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        email_verified=True,
    )


@pytest.fixture(name="social_user")
def social_user_fixture(session: Session) -> User:
    """An account created by Google sign-in, without a password."""
    return _create_user(
        session,
        username="gina",
        email="gina@example.com",
        email_verified=True,
        google_id="google-gina",
    )


@pytest.fixture(name="admin_user")
def admin_user_fixture(session: Session) -> User:
    return _create_user(
        session,
        username="root",
        email="root@example.com",
        password_hash=hash_password(TEST_PASSWORD),
        email_verified=True,
        role=UserRole.admin,
    )


@pytest.fixture(name="auth_headers")
def auth_headers_fixture(tokens: TokenIssuer):
    """Build a bearer header for a user."""

    def _headers(user: User) -> dict[str, str]:
        token = tokens.issue(user.id, user.username)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture(name="client")
def client_fixture(
    session: Session,
    test_settings: Settings,
    tokens: TokenIssuer,
    authenticator: CredentialAuthenticator,
    second_factor: SecondFactorManager,
    recovery: RecoveryTokenManager,
    linker: IdentityLinker,
    registry: ProviderRegistry,
):
    """Create a test client with overridden dependencies."""
    app.dependency_overrides[get_session] = lambda: session
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_token_issuer] = lambda: tokens
    app.dependency_overrides[get_credential_authenticator] = lambda: authenticator
    app.dependency_overrides[get_second_factor_manager] = lambda: second_factor
    app.dependency_overrides[get_recovery_token_manager] = lambda: recovery
    app.dependency_overrides[get_identity_linker] = lambda: linker
    app.dependency_overrides[get_provider_registry] = lambda: registry

    client = TestClient(app)
    yield client

    app.dependency_overrides.clear()
