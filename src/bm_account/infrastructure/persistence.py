"""AccountRepository — concrete implementation of AccountRepositoryProtocol.

Balance mutations use atomic PostgreSQL UPDATE ... RETURNING. A debit that
returns 0 rows means the balance would have gone negative; the CHECK
(balance >= 0) on users is the last line behind that guard.

Every mutation appends one ledger_entries row in the same transaction.

Transaction ownership: the CALLER opens the transaction (run_in_transaction).
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bm_account.domain.models import Account, LedgerEntry
from src.bm_common.errors import (
    InsufficientBalanceError,
    InternalError,
    UserNotFoundError,
)

# ---------------------------------------------------------------------------
# SQL: users balance
# ---------------------------------------------------------------------------

_ACCOUNT_COLUMNS = "id, balance, is_admin, created_at, updated_at"

_GET_ACCOUNT_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM users
    WHERE id = :user_id
""")

_GET_ACCOUNT_FOR_UPDATE_SQL = text(f"""
    SELECT {_ACCOUNT_COLUMNS}
    FROM users
    WHERE id = :user_id
    FOR UPDATE
""")

_CREDIT_SQL = text(f"""
    UPDATE users
    SET balance = balance + :amount,
        updated_at = NOW()
    WHERE id = :user_id
    RETURNING {_ACCOUNT_COLUMNS}
""")

_DEBIT_SQL = text(f"""
    UPDATE users
    SET balance = balance - :amount,
        updated_at = NOW()
    WHERE id = :user_id AND balance >= :amount
    RETURNING {_ACCOUNT_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: ledger
# ---------------------------------------------------------------------------

_INSERT_LEDGER_SQL = text("""
    INSERT INTO ledger_entries
        (user_id, entry_type, amount, balance_after,
         reference_type, reference_id, description)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after,
         :reference_type, :reference_id, :description)
""")

_LIST_LEDGER_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after,
           reference_type, reference_id, description, created_at
    FROM ledger_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < CAST(:cursor_id AS BIGINT))
      AND (CAST(:entry_type AS TEXT) IS NULL OR entry_type = CAST(:entry_type AS TEXT))
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_account(row: Any) -> Account:
    return Account(
        user_id=row.id,
        balance=row.balance,
        is_admin=row.is_admin,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_ledger(row: Any) -> LedgerEntry:
    return LedgerEntry(
        id=row.id,
        user_id=row.user_id,
        entry_type=row.entry_type,
        amount=row.amount,
        balance_after=row.balance_after,
        reference_type=row.reference_type,
        reference_id=row.reference_id,
        description=row.description,
        created_at=row.created_at,
    )


class AccountRepository:
    """Concrete repository — every balance change is one atomic UPDATE."""

    async def get_account(self, db: AsyncSession, user_id: str) -> Account | None:
        row = (await db.execute(_GET_ACCOUNT_SQL, {"user_id": user_id})).fetchone()
        return _row_to_account(row) if row else None

    async def get_account_for_update(
        self, db: AsyncSession, user_id: str
    ) -> Account | None:
        row = (
            await db.execute(_GET_ACCOUNT_FOR_UPDATE_SQL, {"user_id": user_id})
        ).fetchone()
        return _row_to_account(row) if row else None

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str | None = None,
    ) -> Account:
        if amount <= 0:
            raise InternalError(f"Debit amount must be positive, got {amount}")
        row = (
            await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        ).fetchone()
        if row is None:
            current = await self.get_account(db, user_id)
            if current is None:
                raise UserNotFoundError(user_id)
            raise InsufficientBalanceError(amount, current.balance)
        account = _row_to_account(row)
        await self._write_ledger(
            db, account, -amount, entry_type, ref_type, ref_id, description
        )
        return account

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str | None = None,
    ) -> Account:
        if amount <= 0:
            raise InternalError(f"Credit amount must be positive, got {amount}")
        row = (
            await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})
        ).fetchone()
        if row is None:
            raise UserNotFoundError(user_id)
        account = _row_to_account(row)
        await self._write_ledger(
            db, account, amount, entry_type, ref_type, ref_id, description
        )
        return account

    async def list_ledger_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[LedgerEntry]:
        result = await db.execute(
            _LIST_LEDGER_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_ledger(row) for row in result.fetchall()]

    async def _write_ledger(
        self,
        db: AsyncSession,
        account: Account,
        signed_amount: int,
        entry_type: str,
        ref_type: str | None,
        ref_id: str | None,
        description: str | None,
    ) -> None:
        await db.execute(
            _INSERT_LEDGER_SQL,
            {
                "user_id": account.user_id,
                "entry_type": entry_type,
                "amount": signed_amount,
                "balance_after": account.balance,
                "reference_type": ref_type,
                "reference_id": ref_id,
                "description": description,
            },
        )
