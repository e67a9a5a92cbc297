import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header

from app.api.deps import get_identity_provider, get_storage
from app.core.exceptions import AuthenticationError, ValidationError
from app.db.storage import Storage
from app.schemas.records import IdentityUser, NewUser, User
from app.schemas.requests import LoginRequest, LoginResponse, SignupRequest
from app.services.integrations.base import IdentityProvider

logger = logging.getLogger(__name__)

auth_router = APIRouter(prefix="/auth")


def _unique_username(storage: Storage, email: str) -> str:
    base = email.split("@")[0] or "user"
    username, suffix = base, 1
    while storage.get_user_by_username(username) is not None:
        suffix += 1
        username = f"{base}{suffix}"
    return username


def link_local_user(storage: Storage, identity: IdentityUser) -> User:
    """Return the local user for an identity, creating or linking it on first sight."""
    user = storage.get_user_by_external_id(identity.id)
    if user is not None:
        return user

    if not identity.email:
        raise ValidationError("User email not available")

    user = storage.get_user_by_email(identity.email)
    if user is None:
        logger.info(f"User not found in local storage, creating from identity data: {identity.email}")
        user = storage.create_user(
            NewUser(
                username=_unique_username(storage, identity.email),
                email=identity.email,
                full_name=identity.full_name or "",
                external_id=identity.id,
            )
        )
        logger.info(f"Created local user record for {identity.email} with ID: {user.id}")
        return user

    return storage.update_user(user.id, external_id=identity.id)


def _available_username(storage: Storage, payload: SignupRequest) -> str:
    if storage.get_user_by_email(payload.email) is not None:
        raise ValidationError("User with this email already exists")

    username = payload.username or _unique_username(storage, payload.email)
    if storage.get_user_by_username(username) is not None:
        raise ValidationError("Username already taken")
    return username


@auth_router.post("/signup", response_model=User, status_code=201)
async def signup(
    payload: SignupRequest,
    storage: Storage = Depends(get_storage),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
):
    # Storage calls are synchronous and run in worker threads
    username = await asyncio.to_thread(_available_username, storage, payload)

    identity = await identity_provider.sign_up(payload.email, payload.password, payload.full_name)

    user = await asyncio.to_thread(
        storage.create_user,
        NewUser(
            username=username,
            email=payload.email,
            full_name=payload.full_name,
            external_id=identity.id,
        ),
    )
    logger.info(f"Signed up user {user.id} ({user.email})")
    return user


@auth_router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    storage: Storage = Depends(get_storage),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
):
    identity, session = await identity_provider.sign_in(payload.email, payload.password)
    user = await asyncio.to_thread(link_local_user, storage, identity)
    return LoginResponse(user=user, session=session)


@auth_router.get("/user", response_model=User)
async def current_user(
    authorization: Optional[str] = Header(default=None),
    storage: Storage = Depends(get_storage),
    identity_provider: IdentityProvider = Depends(get_identity_provider),
):
    if not authorization:
        raise AuthenticationError("No authorization header")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Malformed authorization header")

    identity = await identity_provider.get_user(token.strip())
    return await asyncio.to_thread(link_local_user, storage, identity)
