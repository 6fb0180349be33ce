"""
Model package.

SQLModel.metadata only knows about table models that have been imported,
so init_db() imports this package before calling create_all().
"""

from warden.user.models import User  # noqa: F401
