"""
FastAPI router for credential endpoints.

Thin transport over CredentialService: parses bodies, calls the service,
and maps error codes to HTTP statuses.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from common.utils import APIException, CredentialError, success_response
from credentials.dependencies import get_credential_service, require_user
from credentials.models import (
    CredentialsRequest,
    UserInfo,
    UserRecord,
    ValidateTokenRequest,
)
from credentials.service import CredentialService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

ServiceDep = Annotated[CredentialService, Depends(get_credential_service)]
UserDep = Annotated[UserRecord, Depends(require_user)]


@router.post("/register", status_code=201)
async def register(body: CredentialsRequest, service: ServiceDep):
    """Register a new user account."""
    try:
        user = await service.register(body.email, body.password)
    except CredentialError as e:
        raise APIException.from_error(e)

    return success_response(
        {"user": UserInfo.from_record(user).model_dump()},
        message="User registered successfully",
    )


@router.post("/login")
async def login(body: CredentialsRequest, service: ServiceDep):
    """Log in with email + password and receive a bearer token."""
    try:
        result = await service.login(body.email, body.password)
    except CredentialError as e:
        raise APIException.from_error(e)

    return success_response({
        "token": result.token,
        "expiresAt": result.expires_at.isoformat(),
        "user": result.user.model_dump(),
    })


@router.post("/validate")
async def validate(body: ValidateTokenRequest, service: ServiceDep):
    """Check a token and return the user it belongs to."""
    try:
        user = await service.validate_token(body.token)
    except CredentialError as e:
        raise APIException.from_error(e)

    return success_response({
        "valid": True,
        "user": UserInfo.from_record(user).model_dump(),
    })


@router.get("/user")
async def get_current_user(user: UserDep):
    """Return the authenticated user."""
    return success_response(UserInfo.from_record(user).model_dump())


@router.delete("/user")
async def delete_current_user(user: UserDep, service: ServiceDep):
    """Delete the authenticated user's account."""
    try:
        await service.delete_user(user.email)
    except CredentialError as e:
        raise APIException.from_error(e)

    return success_response(message="User deleted")


@router.get("/health")
async def health():
    return {"status": "healthy"}
