# kg_chapters/web/security.py

from __future__ import annotations

import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from kg_chapters.config.settings import Settings, get_settings


# -------------------------------
# API key auth
# -------------------------------

def api_key_auth(
    x_api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
    config: Settings = Depends(get_settings),
) -> None:
    """
    Header-based API key check for the extraction and analysis routes.

    Settings come in through `get_settings`, so tests can swap them with
    `app.dependency_overrides`. With no `API_KEY` configured every request
    passes.
    """
    if config.API_KEY is None:
        return

    expected = config.API_KEY.get_secret_value()
    if x_api_key is None or not secrets.compare_digest(x_api_key, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key.",
        )
