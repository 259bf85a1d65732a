"""
User CRUD endpoints.

All routes live under /users and are guarded by the API key middleware.
Users are addressed by their current position in the store.
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, Body, Depends, Request, Response

from ..core.exceptions import ValidationError
from ..core.masking import mask_user
from ..core.store import UserStore
from ..models.user import ErrorResponse, User

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 8

router = APIRouter(
    responses={
        401: {"model": ErrorResponse, "description": "Invalid or missing API key"},
    },
)


def get_user_store(request: Request) -> UserStore:
    """Dependency returning the application's user store."""
    return request.app.state.user_store


def validate_new_user(user: Optional[User]) -> User:
    """
    Check a create payload and return it with name and email trimmed.

    Checks run in order and stop at the first failure.
    """
    if user is None:
        raise ValidationError("User payload is null.")
    if not user.name or not user.name.strip():
        raise ValidationError("Name is required.")
    if not user.email or not user.email.strip() or "@" not in user.email:
        raise ValidationError("A valid email is required.")
    if not user.password or not user.password.strip() or len(user.password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password is required and must be at least {MIN_PASSWORD_LENGTH} characters."
        )

    return user.model_copy(update={"name": user.name.strip(), "email": user.email.strip()})


@router.get("", response_model=List[User], include_in_schema=False)
@router.get(
    "/",
    response_model=List[User],
    summary="List users",
)
async def list_users(store: UserStore = Depends(get_user_store)) -> List[User]:
    return store.list()


@router.get(
    "/{user_id}",
    response_model=User,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Get user by index",
)
async def get_user(user_id: int, store: UserStore = Depends(get_user_store)) -> User:
    return store.get(user_id)


@router.post(
    "/add",
    response_model=User,
    status_code=201,
    responses={400: {"model": ErrorResponse, "description": "Invalid user payload"}},
    summary="Create user",
    description="""
    Append a new user to the store.

    **Validation (first failure wins):**
    - Payload present
    - Name not blank (trimmed before storing)
    - Email contains '@' (trimmed before storing)
    - Password at least 8 characters

    The password is returned base64-masked. The Location header points at
    the new user's index.
    """,
)
async def create_user(
    response: Response,
    user: Optional[User] = Body(default=None),
    store: UserStore = Depends(get_user_store),
) -> User:
    try:
        valid_user = validate_new_user(user)
    except ValidationError as e:
        logger.info("User creation rejected", reason=e.message)
        raise

    masked_user = mask_user(valid_user)
    index = store.append(masked_user)

    response.headers["Location"] = f"/users/{index}"
    logger.info("User created", index=index)
    return masked_user


@router.put(
    "/update/{user_id}",
    response_model=User,
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Replace user",
    description="""
    Overwrite the user at the given index. Fields are not validated here,
    only the password is masked again.
    """,
)
async def replace_user(
    user_id: int,
    user: User,
    store: UserStore = Depends(get_user_store),
) -> User:
    masked_user = mask_user(user)
    store.replace(user_id, masked_user)

    logger.info("User replaced", index=user_id)
    return masked_user


@router.delete(
    "/delete/{user_id}",
    response_model=List[User],
    responses={404: {"model": ErrorResponse, "description": "User not found"}},
    summary="Delete user",
)
async def delete_user(user_id: int, store: UserStore = Depends(get_user_store)) -> List[User]:
    remaining = store.remove(user_id)

    logger.info("User deleted", index=user_id, remaining=len(remaining))
    return remaining
