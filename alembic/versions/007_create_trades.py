"""007: create trades table

Revision ID: 007
Revises: 006
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE trades (
            id              VARCHAR(64)     PRIMARY KEY,
            market_id       VARCHAR(64)     NOT NULL REFERENCES markets (id),
            taker_order_id  VARCHAR(64)     NOT NULL,
            maker_order_id  VARCHAR(64)     NOT NULL,
            taker_side      VARCHAR(10)     NOT NULL,
            yes_user_id     VARCHAR(64)     NOT NULL,
            no_user_id      VARCHAR(64)     NOT NULL,
            yes_price       SMALLINT        NOT NULL,
            no_price        SMALLINT        NOT NULL,
            shares_traded   BIGINT          NOT NULL,
            total_amount    BIGINT          NOT NULL,
            executed_at     TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_trades_taker_side     CHECK (taker_side IN ('YES', 'NO')),
            CONSTRAINT ck_trades_prices         CHECK (
                yes_price BETWEEN 1 AND 99 AND yes_price + no_price = 100
            ),
            CONSTRAINT ck_trades_shares         CHECK (shares_traded > 0),
            CONSTRAINT ck_trades_amount         CHECK (total_amount = shares_traded)
        );
    """)
    op.execute("CREATE INDEX idx_trades_market_time ON trades (market_id, executed_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_trades_yes_user ON trades (yes_user_id);")
    op.execute("CREATE INDEX idx_trades_no_user ON trades (no_user_id);")
    op.execute("COMMENT ON TABLE trades IS 'Append-only trade log';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS trades CASCADE;")
