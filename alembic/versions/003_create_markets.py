"""003: create markets table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE markets (
            id                              INTEGER         GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
            title                           VARCHAR(500)    NOT NULL,
            description                     TEXT,
            category                        VARCHAR(50)     NOT NULL,
            stake_amount                    BIGINT          NOT NULL,
            counterparty_stake_amount       BIGINT          NOT NULL,
            odds_bps                        INTEGER         NOT NULL DEFAULT 10000,
            creator_id                      VARCHAR(64)     NOT NULL REFERENCES users (id),
            counterparty_id                 VARCHAR(64)     REFERENCES users (id),
            status                          VARCHAR(20)     NOT NULL DEFAULT 'open',
            settlement                      VARCHAR(20),
            expiry_date                     TIMESTAMPTZ     NOT NULL,
            payment_signature               TEXT,
            counterparty_payment_signature  TEXT,
            created_at                      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            settled_at                      TIMESTAMPTZ,
            cancelled_at                    TIMESTAMPTZ,
            CONSTRAINT ck_markets_stake_min         CHECK (stake_amount >= 10000000),
            CONSTRAINT ck_markets_cp_stake_min      CHECK (counterparty_stake_amount >= 10000000),
            CONSTRAINT ck_markets_odds_range        CHECK (odds_bps BETWEEN 1000 AND 100000),
            CONSTRAINT ck_markets_no_self_join      CHECK (counterparty_id IS NULL OR counterparty_id <> creator_id),
            CONSTRAINT ck_markets_status CHECK (
                status IN ('open', 'active', 'settled', 'cancelled')
            ),
            CONSTRAINT ck_markets_settlement CHECK (
                settlement IS NULL OR settlement IN ('creator_wins', 'counterparty_wins', 'refund')
            ),
            CONSTRAINT ck_markets_counterparty_iff_joined CHECK (
                (counterparty_id IS NOT NULL) = (status IN ('active', 'settled'))
            ),
            CONSTRAINT ck_markets_settlement_iff_settled CHECK (
                (settlement IS NOT NULL) = (status = 'settled')
            )
        );
    """)
    op.execute("CREATE INDEX idx_markets_status ON markets (status, created_at DESC);")
    op.execute("CREATE INDEX idx_markets_creator ON markets (creator_id);")
    op.execute("CREATE INDEX idx_markets_counterparty ON markets (counterparty_id) WHERE counterparty_id IS NOT NULL;")
    op.execute("COMMENT ON TABLE markets IS '1-vs-1 markets — stakes in lamports, open → active → settled | open → cancelled';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS markets CASCADE;")
