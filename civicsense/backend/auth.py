"""Authentication module: bearer token -> resolved principal."""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Annotated, ClassVar, Union

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from config import settings
from errors import AuthenticationError, AuthorizationError, NotFoundError
from services.repositories import UserAccount, UserRepository, get_user_repository

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
# auto_error=False so a missing header flows into AuthenticationError (401) instead of FastAPI's default.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


@dataclass(frozen=True)
class AdminPrincipal:
    id: str
    name: str = ""
    role: ClassVar[str] = "admin"


@dataclass(frozen=True)
class DepartmentPrincipal:
    id: str
    department: str
    name: str = ""
    role: ClassVar[str] = "department"


@dataclass(frozen=True)
class MandalAdminPrincipal:
    id: str
    mandal_area: str
    name: str = ""
    role: ClassVar[str] = "mandal-admin"


@dataclass(frozen=True)
class CitizenPrincipal:
    id: str
    name: str = ""
    role: ClassVar[str] = "citizen"


Principal = Union[AdminPrincipal, DepartmentPrincipal, MandalAdminPrincipal, CitizenPrincipal]


def principal_from_account(account: UserAccount) -> Principal:
    role = (account.role or "").strip().lower()
    if role == AdminPrincipal.role:
        return AdminPrincipal(id=account.id, name=account.full_name)
    if role == DepartmentPrincipal.role:
        if not account.department:
            raise AuthorizationError("Department account has no department assigned")
        return DepartmentPrincipal(id=account.id, department=account.department, name=account.full_name)
    if role == MandalAdminPrincipal.role:
        if not account.mandal_area:
            raise AuthorizationError("Mandal account has no mandal area assigned")
        return MandalAdminPrincipal(id=account.id, mandal_area=account.mandal_area, name=account.full_name)
    if role == CitizenPrincipal.role:
        return CitizenPrincipal(id=account.id, name=account.full_name)
    logger.warning("Rejected account %s with unsupported role %r", account.id, account.role)
    raise AuthorizationError("Unsupported role")


def principal_to_dict(principal: Principal) -> dict:
    return {
        "id": principal.id,
        "name": principal.name,
        "role": principal.role,
        "department": getattr(principal, "department", None),
        "mandal_area": getattr(principal, "mandal_area", None),
    }


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(plain_password, password_hash)


def authenticate_user(users: UserRepository, email: str, password: str) -> UserAccount | None:
    account = users.find_by_email(email)
    if not account or not account.is_active:
        return None
    if not verify_password(password, account.password_hash):
        return None
    return account


def create_access_token(*, sub: str, role: str, expires_minutes: int | None = None) -> str:
    minutes = settings.jwt_exp_minutes if expires_minutes is None else expires_minutes
    exp = dt.datetime.now(dt.timezone.utc) + dt.timedelta(minutes=minutes)
    payload = {"sub": sub, "role": role, "exp": exp}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> str:
    """Returns the token subject (user id)."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        raise AuthenticationError("Invalid token") from e
    sub = payload.get("sub")
    if not sub:
        raise AuthenticationError("Invalid token")
    return str(sub)


def get_current_principal(
    token: Annotated[str | None, Depends(oauth2_scheme)],
    users: Annotated[UserRepository, Depends(get_user_repository)],
) -> Principal:
    if settings.disable_auth:
        return AdminPrincipal(id="public", name="Public")
    if not token:
        raise AuthenticationError("Access token required")
    user_id = decode_token(token)
    account = users.get(user_id)
    if account is None:
        logger.warning("Token subject %s does not resolve to a user", user_id)
        raise NotFoundError()
    if not account.is_active:
        raise AuthenticationError("Account is inactive")
    return principal_from_account(account)


def require_role(*allowed: str):
    def _dep(principal: Annotated[Principal, Depends(get_current_principal)]) -> Principal:
        if principal.role not in allowed:
            logger.warning("Role %s denied; endpoint requires one of %s", principal.role, ", ".join(allowed))
            raise AuthorizationError()
        return principal

    return _dep
