"""Auth domain router.

Routes for local registration and login, the 2FA login step, email
verification, password reset and TOTP enrollment. Handlers stay thin and
delegate to the services in warden.auth.
"""

import logging

from fastapi import APIRouter, BackgroundTasks, Request, status

from warden.auth.authenticator import AuthOutcome
from warden.auth.dependencies import (
    AuthenticatorDep,
    CurrentUserDep,
    RecoveryDep,
    SecondFactorDep,
)
from warden.auth.exceptions import (
    RecoveryTokenError,
    RecoveryTokenExpiredError,
    SocialOnlyAccountError,
)
from warden.auth.recovery import ConsumeOutcome, ConsumeResult, RecoveryKind
from warden.auth.redirects import client_redirect, error_redirect, wants_html
from warden.auth.schemas import (
    AuthMessage,
    EmailRequest,
    LoginRequest,
    LoginResponse,
    PasswordResetConfirmRequest,
    PasswordResetRequestResponse,
    RegisterRequest,
    RegisterResponse,
    TokenRequest,
    TwoFactorLoginRequest,
    TwoFactorRequiredResponse,
    TwoFactorSetupResponse,
    UserSummary,
    VerificationSentResponse,
)
from warden.auth.second_factor import EnrollmentOutcome
from warden.core.constants import CommonResponses, Routes
from warden.core.deps import SettingsDep, UserRepoDep
from warden.core.email import send_email_verification_email, send_password_reset_email
from warden.core.exceptions import BadRequestError, InvalidCredentialsError
from warden.user.exceptions import UserNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix=Routes.AUTH.prefix,
    tags=[Routes.AUTH.tag],
    responses={**CommonResponses.BAD_REQUEST},
)


def _raise_for_consume(result: ConsumeResult) -> None:
    if result.outcome is ConsumeOutcome.expired:
        raise RecoveryTokenExpiredError()
    if result.outcome is ConsumeOutcome.not_found:
        raise RecoveryTokenError()


@router.post(
    "/register",
    response_model=RegisterResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    repo: UserRepoDep,
    authenticator: AuthenticatorDep,
    recovery: RecoveryDep,
    settings: SettingsDep,
    background_tasks: BackgroundTasks,
):
    """Register a local account and sign it in.

    A verification email is sent after the response; delivery failures are
    logged and never fail the registration.
    """
    user, token = authenticator.register(
        repo, payload.username, payload.email, payload.password
    )
    verify_token = recovery.issue(repo, RecoveryKind.email_verify, user)
    background_tasks.add_task(
        send_email_verification_email, user.email, user.username, verify_token
    )

    return RegisterResponse(
        message="User registered successfully",
        user=UserSummary.model_validate(user),
        token=token,
        verify_token_preview=verify_token if settings.is_development else None,
    )


@router.post(
    "/login",
    response_model=LoginResponse | TwoFactorRequiredResponse,
    responses={**CommonResponses.UNAUTHORIZED},
)
async def login(
    payload: LoginRequest,
    repo: UserRepoDep,
    authenticator: AuthenticatorDep,
):
    """Login with email/password.

    Accounts with 2FA enabled get {"require2FA": true} and no token; the
    client finishes with /login/verify-2fa.
    """
    result = authenticator.authenticate(repo, payload.email, payload.password)

    if result.outcome is AuthOutcome.social_only:
        raise SocialOnlyAccountError()
    if result.outcome is AuthOutcome.requires_2fa:
        return TwoFactorRequiredResponse()
    if result.outcome is not AuthOutcome.success:
        raise InvalidCredentialsError()

    return LoginResponse(
        message="Login successful",
        user=UserSummary.model_validate(result.user),
        token=result.token,
    )


@router.post(
    "/login/verify-2fa",
    response_model=LoginResponse,
    responses={**CommonResponses.UNAUTHORIZED},
)
async def login_verify_two_factor(
    payload: TwoFactorLoginRequest,
    repo: UserRepoDep,
    authenticator: AuthenticatorDep,
):
    """Complete a 2FA-gated login with a TOTP code."""
    user, token = authenticator.complete_two_factor(repo, payload.email, payload.token)
    return LoginResponse(
        message="Login successful",
        user=UserSummary.model_validate(user),
        token=token,
    )


@router.get("/verify-email/{token}", response_model=AuthMessage)
async def verify_email_link(
    token: str,
    request: Request,
    repo: UserRepoDep,
    recovery: RecoveryDep,
    settings: SettingsDep,
):
    """Email verification link target.

    Browsers are redirected to the client login page; API clients get JSON.
    """
    result = recovery.consume(repo, RecoveryKind.email_verify, token)

    if wants_html(request):
        if not result.ok:
            message = (
                "Verification link has expired"
                if result.outcome is ConsumeOutcome.expired
                else "Invalid verification link"
            )
            return error_redirect(settings, message)
        return client_redirect(settings, verified="1")

    _raise_for_consume(result)
    return AuthMessage(message="Email verified successfully")


@router.post("/verify-email", response_model=AuthMessage)
async def verify_email(payload: TokenRequest, repo: UserRepoDep, recovery: RecoveryDep):
    """Verify an email address with the token from the verification email."""
    result = recovery.consume(repo, RecoveryKind.email_verify, payload.token)
    _raise_for_consume(result)
    return AuthMessage(message="Email verified successfully")


@router.post(
    "/verify-email/resend",
    response_model=VerificationSentResponse,
    response_model_exclude_none=True,
    responses={**CommonResponses.NOT_FOUND},
)
async def resend_verification_email(
    payload: EmailRequest,
    repo: UserRepoDep,
    recovery: RecoveryDep,
    settings: SettingsDep,
    background_tasks: BackgroundTasks,
):
    """Issue a fresh verification token, replacing any earlier one."""
    user = repo.get_by_email(payload.email)
    if user is None:
        raise UserNotFoundError()
    if user.email_verified:
        raise BadRequestError("Email is already verified")

    verify_token = recovery.issue(repo, RecoveryKind.email_verify, user)
    background_tasks.add_task(
        send_email_verification_email, user.email, user.username, verify_token
    )
    return VerificationSentResponse(
        message="Verification email sent",
        verify_token_preview=verify_token if settings.is_development else None,
    )


@router.post(
    "/password/reset/request",
    response_model=PasswordResetRequestResponse,
    response_model_exclude_none=True,
)
async def request_password_reset(
    payload: EmailRequest,
    repo: UserRepoDep,
    recovery: RecoveryDep,
    settings: SettingsDep,
    background_tasks: BackgroundTasks,
):
    """Request a password reset email.

    Always returns the same message so the response does not reveal
    whether the address is registered.
    """
    preview = None
    user = repo.get_by_email(payload.email)
    if user is not None:
        reset_token = recovery.issue(repo, RecoveryKind.password_reset, user)
        background_tasks.add_task(send_password_reset_email, user.email, reset_token)
        if settings.is_development:
            preview = reset_token
    else:
        logger.debug("Password reset requested for unknown address")

    return PasswordResetRequestResponse(
        message="If an account with that email exists, a reset link has been sent",
        token_preview=preview,
    )


@router.post("/password/reset/confirm", response_model=AuthMessage)
async def confirm_password_reset(
    payload: PasswordResetConfirmRequest,
    repo: UserRepoDep,
    recovery: RecoveryDep,
):
    """Set a new password using the token from the reset email."""
    result = recovery.consume(
        repo, RecoveryKind.password_reset, payload.token, new_password=payload.password
    )
    _raise_for_consume(result)
    return AuthMessage(message="Password has been reset successfully")


@router.post(
    "/2fa/setup",
    response_model=TwoFactorSetupResponse,
    responses={**CommonResponses.UNAUTHORIZED},
)
async def setup_two_factor(
    user: CurrentUserDep, repo: UserRepoDep, second_factor: SecondFactorDep
):
    """Start TOTP enrollment; 2FA stays off until /2fa/verify-setup succeeds."""
    if user.two_factor_enabled:
        raise BadRequestError("Two-factor authentication is already enabled")
    enrollment = second_factor.enroll(repo, user)
    return TwoFactorSetupResponse(
        secret=enrollment.secret,
        provisioning_uri=enrollment.provisioning_uri,
    )


@router.post(
    "/2fa/verify-setup",
    response_model=AuthMessage,
    responses={**CommonResponses.UNAUTHORIZED},
)
async def verify_two_factor_setup(
    payload: TokenRequest,
    user: CurrentUserDep,
    repo: UserRepoDep,
    second_factor: SecondFactorDep,
):
    """Confirm enrollment with a first code from the authenticator app."""
    if not user.two_factor_secret:
        raise BadRequestError("Two-factor setup has not been started")
    outcome = second_factor.confirm_enroll(repo, user, payload.token)
    if outcome is EnrollmentOutcome.invalid_code:
        raise BadRequestError("Invalid two-factor code")
    return AuthMessage(message="Two-factor authentication enabled")


@router.post(
    "/2fa/disable",
    response_model=AuthMessage,
    responses={**CommonResponses.UNAUTHORIZED},
)
async def disable_two_factor(
    user: CurrentUserDep, repo: UserRepoDep, second_factor: SecondFactorDep
):
    """Turn 2FA off and discard the secret."""
    second_factor.disable(repo, user)
    return AuthMessage(message="Two-factor authentication disabled")
