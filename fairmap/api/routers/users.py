"""User and session endpoints.

Routes
------
POST   /users              Register a new user
POST   /confirm-email      Mark a user's email address as confirmed
POST   /login              Start a session
POST   /logout             End the session
GET    /users/{username}   Own id and email (logged-in user only)
DELETE /users/{user_id}    Delete own account
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from fairmap.api.deps import current_user_id, get_repo
from fairmap.core import usecase
from fairmap.core.repository import Repository

router = APIRouter()


class UserCreate(BaseModel):
    username: str
    password: str
    email: str


class Credentials(BaseModel):
    username: str
    password: str


class EmailConfirmation(BaseModel):
    u_id: str


@router.post("/users", status_code=201)
def create_user(body: UserCreate, repo: Repository = Depends(get_repo)) -> Response:
    usecase.create_new_user(repo, usecase.NewUser(**body.model_dump()))
    return Response(status_code=201)


@router.post("/confirm-email")
def confirm_email(body: EmailConfirmation, repo: Repository = Depends(get_repo)) -> Response:
    usecase.confirm_email(repo, body.u_id)
    return Response(status_code=204)


@router.post("/login")
def login(body: Credentials, request: Request, repo: Repository = Depends(get_repo)) -> Response:
    user_id = usecase.login(repo, body.username, body.password)
    request.session["user_id"] = user_id
    return Response(status_code=204)


@router.post("/logout")
def logout(request: Request) -> Response:
    request.session.pop("user_id", None)
    return Response(status_code=204)


@router.get("/users/{username}")
def get_user(
    username: str,
    login_id: str = Depends(current_user_id),
    repo: Repository = Depends(get_repo),
) -> dict[str, Any]:
    user_id, email = usecase.get_user(repo, login_id, username)
    return {"id": user_id, "email": email}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: str,
    request: Request,
    login_id: str = Depends(current_user_id),
    repo: Repository = Depends(get_repo),
) -> Response:
    usecase.delete_user(repo, login_id, user_id)
    request.session.pop("user_id", None)
    return Response(status_code=204)
