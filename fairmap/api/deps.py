"""Request-scoped accessors shared by the routers."""

from __future__ import annotations

from fastapi import HTTPException, Request

from fairmap.core.repository import Repository
from fairmap.core.search import SearchConfig


def get_repo(request: Request) -> Repository:
    return request.app.state.repo


def get_search_config(request: Request) -> SearchConfig:
    return request.app.state.search_config


def current_user_id(request: Request) -> str:
    """Return the logged-in user's id or answer 401."""
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(status_code=401, detail="Login required.")
    return user_id


def extract_ids(text: str) -> list[str]:
    """Split a comma-separated id list, dropping empty items."""
    return [part for part in text.split(",") if part]
