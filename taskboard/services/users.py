import asyncio
import logging

from taskboard.errors import AlreadyExistsError, DuplicateKeyError, InvalidArgumentError, NotFoundError, store_errors
from taskboard.stores.base import Store, UserRecord
from taskboard.utils.security import get_password_hash
from taskboard.utils.timestamps import next_timestamp, utcnow
from taskboard.utils.validation import check_password, parse_id

logger = logging.getLogger(__name__)

INVALID_USER_ID = "Invalid user ID"


async def create_user(store: Store, email: str | None, password: str | None) -> UserRecord:
    if not email or not password:
        raise InvalidArgumentError("Email and password are required")
    check_password(password)

    with store_errors("Failed to create user"):
        if await store.get_user_by_username(email) is not None:
            raise AlreadyExistsError("Email already exists")
        # bcrypt blocks; run it in a worker thread
        hashed = await asyncio.to_thread(get_password_hash, password)
        try:
            user = await store.create_user(email, hashed, utcnow())
        except DuplicateKeyError:
            # Lost the race against a concurrent signup for the same email
            raise AlreadyExistsError("Email already exists")

    logger.info("[USERS] Created user %s", user.id)
    return user


async def list_users(store: Store) -> list[UserRecord]:
    with store_errors("Failed to fetch users"):
        return await store.list_users()


async def get_user(store: Store, user_id) -> UserRecord:
    user_id = parse_id(user_id, INVALID_USER_ID)
    with store_errors("Failed to fetch user"):
        user = await store.get_user(user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


async def update_user(store: Store, user_id, password: str | None) -> UserRecord:
    """Only the password is mutable."""
    user_id = parse_id(user_id, INVALID_USER_ID)
    check_password(password)

    with store_errors("Failed to update user"):
        existing = await store.get_user(user_id)
        if existing is None:
            raise NotFoundError("User not found")
        hashed = await asyncio.to_thread(get_password_hash, password)
        user = await store.update_user_password(user_id, hashed, next_timestamp(existing.updated_at))
    if user is None:
        raise NotFoundError("User not found")
    return user


async def delete_user(store: Store, user_id):
    user_id = parse_id(user_id, INVALID_USER_ID)
    with store_errors("Failed to delete user"):
        deleted = await store.delete_user(user_id)
    if not deleted:
        raise NotFoundError("User not found")
    logger.info("[USERS] Deleted user %s and owned tasks", user_id)
