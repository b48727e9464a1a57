"""Direct-SQL seeding for integration tests (there is no signup endpoint)."""

import uuid

from sqlalchemy import text

from src.bm_common.database import async_session_factory

_INSERT_USER_SQL = text("""
    INSERT INTO users (id, username, balance, is_admin)
    VALUES (:id, :username, :balance, :is_admin)
""")


async def create_user(balance: int = 0, is_admin: bool = False) -> str:
    """Insert a fresh user row; returns its id."""
    user_id = f"it_{uuid.uuid4().hex[:12]}"
    async with async_session_factory() as session:
        async with session.begin():
            await session.execute(
                _INSERT_USER_SQL,
                {"id": user_id, "username": user_id, "balance": balance, "is_admin": is_admin},
            )
    return user_id
