"""004: create markets table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE markets (
            id                  VARCHAR(64)     PRIMARY KEY,
            title               VARCHAR(256)    NOT NULL,
            description         TEXT,
            creator_id          VARCHAR(64)     REFERENCES users (id),
            status              VARCHAR(20)     NOT NULL DEFAULT 'PROPOSED',
            last_yes_price      SMALLINT,
            last_no_price       SMALLINT,
            total_volume        BIGINT          NOT NULL DEFAULT 0,
            total_yes_shares    BIGINT          NOT NULL DEFAULT 0,
            total_no_shares     BIGINT          NOT NULL DEFAULT 0,
            resolution_outcome  VARCHAR(10),
            resolution_note     TEXT,
            resolution_date     TIMESTAMPTZ,
            resolved_at         TIMESTAMPTZ,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_markets_status            CHECK (
                status IN ('PROPOSED', 'OPEN', 'CLOSED', 'RESOLVED', 'REJECTED')
            ),
            CONSTRAINT ck_markets_outcome           CHECK (
                resolution_outcome IS NULL OR resolution_outcome IN ('YES', 'NO', 'INVALID')
            ),
            CONSTRAINT ck_markets_last_yes_price    CHECK (
                last_yes_price IS NULL OR last_yes_price BETWEEN 1 AND 99
            ),
            CONSTRAINT ck_markets_last_no_price     CHECK (
                last_no_price IS NULL OR last_no_price BETWEEN 1 AND 99
            ),
            CONSTRAINT ck_markets_totals_gte_0      CHECK (
                total_volume >= 0 AND total_yes_shares >= 0 AND total_no_shares >= 0
            ),
            CONSTRAINT ck_markets_resolved_outcome  CHECK (
                (status = 'RESOLVED') = (resolution_outcome IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_markets_status ON markets (status, created_at DESC, id DESC);")
    op.execute("""
        CREATE TRIGGER trg_markets_updated_at
            BEFORE UPDATE ON markets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
