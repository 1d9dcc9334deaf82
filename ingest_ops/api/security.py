"""Shared-secret guard for the admin routes."""

from fastapi import Depends, Header, HTTPException

from ingest_ops.config import Settings
from .dependencies import get_app_settings


def verify_internal_key(
    x_internal_key: str = Header(None),
    settings: Settings = Depends(get_app_settings),
):
    """
    Require X-Internal-Key for admin endpoints when INTERNAL_API_KEY is set.
    """
    if settings.internal_api_key is None:
        return

    if x_internal_key != settings.internal_api_key:
        raise HTTPException(status_code=401, detail="Unauthorized: invalid or missing X-Internal-Key")
