from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from warden.core.settings import get_settings


def add_cors_middleware(app: FastAPI):
    settings = get_settings()
    origins = settings.cors_origins_list

    # Bearer tokens travel in headers, so credentials are only needed for
    # explicit origins; browsers reject "*" combined with credentials.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "PUT", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type", "X-2FA-Code"],
    )
