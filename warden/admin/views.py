from sqladmin import ModelView

from warden.user.models import User


class UserAdmin(ModelView, model=User):
    name = "User"
    name_plural = "Users"

    column_list = [
        User.username,
        User.email,
        User.email_verified,
        User.role,
        User.two_factor_enabled,
        User.id,
        User.created_at,
        User.updated_at,
    ]

    column_searchable_list = [
        User.username,
        User.email,
    ]

    column_sortable_list = [
        User.username,
        User.email,
        User.role,
        User.created_at,
        User.updated_at,
    ]

    # Credentials and recovery material never leave the database.
    column_details_exclude_list = [
        User.password_hash,
        User.two_factor_secret,
        User.email_verification_token,
        User.reset_password_token,
    ]
    form_excluded_columns = [
        User.password_hash,
        User.two_factor_secret,
        User.email_verification_token,
        User.email_verification_expires,
        User.reset_password_token,
        User.reset_password_expires,
    ]
