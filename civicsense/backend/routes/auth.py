from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from auth import (
    Principal,
    authenticate_user,
    create_access_token,
    get_current_principal,
    principal_from_account,
    principal_to_dict,
)
from errors import AuthenticationError
from services.repositories import UserRepository, get_user_repository

router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: dict


@router.post("/login", response_model=LoginResponse)
def login(
    req: LoginRequest,
    users: Annotated[UserRepository, Depends(get_user_repository)],
) -> LoginResponse:
    account = authenticate_user(users, req.email, req.password)
    if not account:
        raise AuthenticationError("Invalid email or password")
    principal = principal_from_account(account)
    token = create_access_token(sub=account.id, role=principal.role)
    return LoginResponse(access_token=token, user=principal_to_dict(principal))


@router.get("/me")
def me(principal: Annotated[Principal, Depends(get_current_principal)]):
    return principal_to_dict(principal)
