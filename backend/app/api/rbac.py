# app/api/rbac.py
from __future__ import annotations

import hashlib
import logging
import secrets
from typing import Callable, Iterable, List, Optional, Set

from fastapi import APIRouter, Depends, Header, HTTPException, status
from sqlalchemy import and_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.db import get_db
from app.models.church import Church, ChurchUser
from app.schemas.church import (
    ChurchBootstrapOut,
    ChurchCreate,
    ChurchRead,
    UserCreate,
    UserOut,
    UserPatch,
    WhoAmI,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/churches", tags=["Churches"])

# Role -> granted permissions. "*" and "prefix:*" are wildcards.
ROLE_PERMISSIONS: dict[str, Set[str]] = {
    "admin": {"*"},
    "volunteer": {
        "members:read",
        "members:write",
        "attendance:read",
        "attendance:write",
        "visitors:read",
        "visitors:write",
        "events:read",
        "follow_up:*",
    },
    "data_viewer": {
        "members:read",
        "attendance:read",
        "visitors:read",
        "events:read",
        "follow_up:read",
        "reports:*",
        "exports:*",
    },
}


# ---- Utilities ----------------------------------------------------------------

def hash_api_key(api_key_plain: str) -> str:
    """Hash the plaintext API key. (sha256 hex; store only the hash)."""
    h = hashlib.sha256()
    h.update((api_key_plain + get_settings().api_key_pepper).encode("utf-8"))
    return h.hexdigest()


def new_api_key() -> str:
    return secrets.token_urlsafe(32)


def _perm_match(user_perm: str, required: str) -> bool:
    """Wildcard-aware permission check."""
    if user_perm == "*":
        return True
    if user_perm.endswith(":*"):
        prefix = user_perm[:-2]
        return required == prefix or required.startswith(prefix + ":")
    return user_perm == required


def _has_permission(granted: Iterable[str], required: str) -> bool:
    return any(_perm_match(p, required) for p in granted)


def permissions_for(role: str) -> Set[str]:
    return ROLE_PERMISSIONS.get(role, set())


def _user_out(user: ChurchUser, api_key: Optional[str] = None) -> UserOut:
    return UserOut(
        id=user.id,
        church_id=user.church_id,
        email=user.email,
        display_name=user.display_name,
        role=user.role,
        is_active=bool(user.is_active),
        api_key=api_key,
    )


# ---- Auth dependencies ---------------------------------------------------------

def get_current_user(
    db: Session = Depends(get_db),
    api_key: Optional[str] = Header(default=None, alias="X-API-Key"),
) -> ChurchUser:
    """Resolve the calling staff user; their church_id is the tenant for the request."""
    if not api_key:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing X-API-Key")

    user = (
        db.execute(
            select(ChurchUser).where(
                and_(ChurchUser.api_key_hash == hash_api_key(api_key), ChurchUser.is_active == True)  # noqa: E712
            )
        )
        .scalars()
        .first()
    )
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")
    return user


def require_permission(required_permission: str) -> Callable[..., ChurchUser]:
    """Dependency factory to enforce a specific permission (wildcards supported)."""
    def _inner(user: ChurchUser = Depends(get_current_user)) -> ChurchUser:
        if not _has_permission(permissions_for(user.role), required_permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {required_permission}",
            )
        return user
    return _inner


# ---- Church bootstrap ---------------------------------------------------------

@router.post("", response_model=ChurchBootstrapOut, status_code=status.HTTP_201_CREATED)
def create_church(payload: ChurchCreate, db: Session = Depends(get_db)):
    """Create a tenant and its first admin. The admin's API key is returned once."""
    church = Church(
        name=payload.name.strip(),
        subdomain=payload.subdomain,
        brand_color=payload.brand_color or "#6366f1",
    )
    db.add(church)
    try:
        db.flush()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Subdomain already taken")

    api_key = new_api_key()
    admin = ChurchUser(
        church_id=church.id,
        email=payload.admin_email.strip().lower(),
        display_name=payload.admin_display_name,
        role="admin",
        api_key_hash=hash_api_key(api_key),
        is_active=True,
    )
    db.add(admin)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="User email already exists")
    db.refresh(church)
    db.refresh(admin)
    logger.info("church created id=%s admin=%s", church.id, admin.id)
    return ChurchBootstrapOut(church=ChurchRead.model_validate(church), admin=_user_out(admin, api_key))


@router.get("/me", response_model=ChurchRead)
def get_my_church(user: ChurchUser = Depends(get_current_user), db: Session = Depends(get_db)):
    church = db.get(Church, user.church_id)
    if not church:
        raise HTTPException(status_code=404, detail="Church not found")
    return church


@router.get("/whoami", response_model=WhoAmI)
def whoami(user: ChurchUser = Depends(get_current_user), db: Session = Depends(get_db)):
    church = db.get(Church, user.church_id)
    return WhoAmI(
        user_id=user.id,
        email=user.email,
        display_name=user.display_name,
        role=user.role,
        church_id=user.church_id,
        church_name=church.name if church else "",
        permissions=sorted(permissions_for(user.role)),
    )


# ---- User endpoints -----------------------------------------------------------

@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    admin: ChurchUser = Depends(require_permission("church:manage")),
):
    api_key = payload.api_key_plain or new_api_key()
    user = ChurchUser(
        church_id=admin.church_id,
        email=payload.email.strip().lower(),
        display_name=payload.display_name,
        role=payload.role,
        api_key_hash=hash_api_key(api_key),
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="User email already exists")
    db.refresh(user)
    logger.info("user created id=%s church=%s role=%s", user.id, user.church_id, user.role)
    return _user_out(user, api_key)


@router.get("/users", response_model=List[UserOut])
def list_users(
    db: Session = Depends(get_db),
    admin: ChurchUser = Depends(require_permission("church:manage")),
):
    users = (
        db.execute(select(ChurchUser).where(ChurchUser.church_id == admin.church_id).order_by(ChurchUser.email))
        .scalars()
        .all()
    )
    return [_user_out(u) for u in users]


@router.patch("/users/{user_id}", response_model=UserOut)
def patch_user(
    user_id: int,
    payload: UserPatch,
    db: Session = Depends(get_db),
    admin: ChurchUser = Depends(require_permission("church:manage")),
):
    user = db.get(ChurchUser, user_id)
    if not user or user.church_id != admin.church_id:
        raise HTTPException(status_code=404, detail="User not found")
    if user.id == admin.id and (payload.is_active is False or (payload.role and payload.role != "admin")):
        raise HTTPException(status_code=400, detail="You cannot deactivate or demote yourself")

    if payload.display_name is not None:
        user.display_name = payload.display_name
    if payload.role is not None:
        user.role = payload.role
    if payload.is_active is not None:
        user.is_active = payload.is_active

    api_key = None
    if payload.rotate_key:
        api_key = new_api_key()
        user.api_key_hash = hash_api_key(api_key)

    db.commit()
    db.refresh(user)
    return _user_out(user, api_key)
