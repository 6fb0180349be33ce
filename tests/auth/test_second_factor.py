"""Tests for warden/auth/second_factor.py - TOTP enrollment and checks."""

from datetime import UTC, datetime, timedelta

import pyotp

from warden.auth.second_factor import (
    SECRET_LENGTH,
    CodeCheck,
    EnrollmentOutcome,
    check_totp,
)

SECRET = pyotp.random_base32(length=SECRET_LENGTH)
MOMENT = datetime(2026, 1, 15, 12, 0, 0, tzinfo=UTC)


def code_at(moment: datetime, secret: str = SECRET) -> str:
    return pyotp.TOTP(secret).at(moment)


class TestCheckTotp:
    def test_current_code(self):
        assert check_totp(SECRET, code_at(MOMENT), at=MOMENT) is True

    def test_one_step_either_side_is_accepted(self):
        """Test the +/-1 step tolerance window."""
        assert check_totp(SECRET, code_at(MOMENT - timedelta(seconds=30)), at=MOMENT)
        assert check_totp(SECRET, code_at(MOMENT + timedelta(seconds=30)), at=MOMENT)

    def test_three_steps_away_is_rejected(self):
        old = code_at(MOMENT - timedelta(seconds=90))
        assert check_totp(SECRET, old, at=MOMENT) is False

    def test_spaces_are_ignored(self):
        code = code_at(MOMENT)
        assert check_totp(SECRET, f" {code[:3]} {code[3:]} ", at=MOMENT) is True

    def test_non_numeric_code(self):
        assert check_totp(SECRET, "abcdef", at=MOMENT) is False
        assert check_totp(SECRET, "", at=MOMENT) is False

    def test_missing_secret(self):
        assert check_totp(None, "123456") is False

    def test_undecodable_secret(self):
        assert check_totp("!!not-base32!!", "123456") is False


class TestSecondFactorManager:
    def test_enroll_stores_pending_secret(self, second_factor, repo, test_user):
        """Test enrollment stores a secret without enabling 2FA."""
        enrollment = second_factor.enroll(repo, test_user)

        assert len(enrollment.secret) == SECRET_LENGTH
        assert test_user.two_factor_secret == enrollment.secret
        assert test_user.two_factor_enabled is False
        assert enrollment.provisioning_uri.startswith("otpauth://totp/")
        assert "issuer=Warden" in enrollment.provisioning_uri
        assert "alice%40example.com" in enrollment.provisioning_uri

    def test_re_enroll_replaces_secret(self, second_factor, repo, test_user):
        first = second_factor.enroll(repo, test_user)
        second = second_factor.enroll(repo, test_user)

        assert first.secret != second.secret
        assert test_user.two_factor_secret == second.secret

    def test_confirm_with_valid_code(self, second_factor, repo, test_user):
        enrollment = second_factor.enroll(repo, test_user)
        code = pyotp.TOTP(enrollment.secret).now()

        outcome = second_factor.confirm_enroll(repo, test_user, code)

        assert outcome is EnrollmentOutcome.enabled
        assert test_user.two_factor_enabled is True

    def test_confirm_with_invalid_code(self, second_factor, repo, test_user):
        """Test a wrong code leaves state unchanged."""
        enrollment = second_factor.enroll(repo, test_user)

        outcome = second_factor.confirm_enroll(repo, test_user, "000000x")

        assert outcome is EnrollmentOutcome.invalid_code
        assert test_user.two_factor_enabled is False
        assert test_user.two_factor_secret == enrollment.secret

    def test_verify(self, second_factor, repo, test_user):
        enrollment = second_factor.enroll(repo, test_user)
        totp = pyotp.TOTP(enrollment.secret)

        assert second_factor.verify(test_user, totp.now()) is CodeCheck.valid
        assert second_factor.verify(test_user, "abc") is CodeCheck.invalid

    def test_disable_clears_secret_and_flag(self, second_factor, repo, test_user):
        enrollment = second_factor.enroll(repo, test_user)
        second_factor.confirm_enroll(
            repo, test_user, pyotp.TOTP(enrollment.secret).now()
        )

        second_factor.disable(repo, test_user)

        assert test_user.two_factor_enabled is False
        assert test_user.two_factor_secret is None
