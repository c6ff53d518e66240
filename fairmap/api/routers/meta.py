"""Read-only lookup endpoints.

Routes
------
GET /tags               All tag ids
GET /categories         All categories
GET /categories/{ids}   One category, or several (comma-separated)
GET /count/entries      Number of entries
GET /count/tags         Number of tags
GET /duplicates         Pairs of entries that look like the same place
GET /server/version     Service version
"""

from __future__ import annotations

from typing import Any, Union

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from fairmap import __version__
from fairmap.api.deps import extract_ids, get_repo
from fairmap.core import usecase
from fairmap.core.models import Category
from fairmap.core.repository import Repository
from fairmap.errors import RepoError

router = APIRouter()


def _category_dict(c: Category) -> dict[str, Any]:
    return {"id": c.id, "name": c.name, "created": c.created, "version": c.version}


@router.get("/tags")
def get_tags(repo: Repository = Depends(get_repo)) -> list[str]:
    return usecase.get_tag_ids(repo)


@router.get("/categories")
def get_categories(repo: Repository = Depends(get_repo)) -> list[dict[str, Any]]:
    return [_category_dict(c) for c in repo.all_categories()]


@router.get("/categories/{ids}")
def get_category(
    ids: str, repo: Repository = Depends(get_repo)
) -> Union[dict[str, Any], list[dict[str, Any]]]:
    id_list = extract_ids(ids)
    categories = repo.all_categories()
    if len(id_list) == 1:
        for c in categories:
            if c.id == id_list[0]:
                return _category_dict(c)
        raise RepoError.not_found(f"category {id_list[0]!r}")
    wanted = set(id_list)
    return [_category_dict(c) for c in categories if not wanted or c.id in wanted]


@router.get("/count/entries")
def count_entries(repo: Repository = Depends(get_repo)) -> int:
    return len(repo.all_entries())


@router.get("/count/tags")
def count_tags(repo: Repository = Depends(get_repo)) -> int:
    return len(usecase.get_tag_ids(repo))


@router.get("/server/version", response_class=PlainTextResponse)
def get_version() -> str:
    return __version__


@router.get("/duplicates")
def get_duplicates(repo: Repository = Depends(get_repo)) -> list[tuple[str, str, str]]:
    """``[id, id, similar_chars | similar_words]`` for every likely duplicate pair."""
    return [(a, b, kind.value) for a, b, kind in usecase.find_duplicate_entries(repo)]
