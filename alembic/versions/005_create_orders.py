"""005: create orders table

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE orders (
            id                  VARCHAR(64)     PRIMARY KEY,
            market_id           VARCHAR(64)     NOT NULL REFERENCES markets (id),
            user_id             VARCHAR(64)     NOT NULL REFERENCES users (id),
            side                VARCHAR(10)     NOT NULL,
            price_cents         SMALLINT        NOT NULL,
            original_amount     BIGINT          NOT NULL,
            remaining_amount    BIGINT          NOT NULL,
            filled_amount       BIGINT          NOT NULL DEFAULT 0,
            status              VARCHAR(20)     NOT NULL DEFAULT 'OPEN',
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            filled_at           TIMESTAMPTZ,
            cancelled_at        TIMESTAMPTZ,
            CONSTRAINT ck_orders_side               CHECK (side IN ('YES', 'NO')),
            CONSTRAINT ck_orders_price              CHECK (price_cents BETWEEN 1 AND 99),
            CONSTRAINT ck_orders_original_amount    CHECK (original_amount > 0),
            CONSTRAINT ck_orders_remaining          CHECK (
                remaining_amount >= 0 AND remaining_amount <= original_amount
            ),
            CONSTRAINT ck_orders_filled             CHECK (
                filled_amount >= 0 AND filled_amount <= original_amount
            ),
            CONSTRAINT ck_orders_fill_consistency   CHECK (
                filled_amount + remaining_amount = original_amount
            ),
            CONSTRAINT ck_orders_status             CHECK (
                status IN ('OPEN', 'PARTIALLY_FILLED', 'FILLED', 'CANCELLED')
            )
        );
    """)
    op.execute("CREATE INDEX idx_orders_user_status ON orders (user_id, status, created_at DESC);")
    # Counter-order walk: side + price ascending, then arrival time
    op.execute("""
        CREATE INDEX idx_orders_book
        ON orders (market_id, side, price_cents, created_at, id)
        WHERE status IN ('OPEN', 'PARTIALLY_FILLED');
    """)
    op.execute("""
        CREATE TRIGGER trg_orders_updated_at
            BEFORE UPDATE ON orders
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE orders IS 'Limit orders; resting while OPEN or PARTIALLY_FILLED';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
