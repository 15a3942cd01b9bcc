"""004: create transactions table

Revision ID: 004
Revises: 003
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE transactions (
            id                  BIGINT          GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL REFERENCES users (id),
            market_id           INTEGER         REFERENCES markets (id),
            type                VARCHAR(20)     NOT NULL,
            amount              BIGINT          NOT NULL,
            description         TEXT,
            payment_signature   TEXT,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_transactions_type CHECK (
                type IN ('stake', 'payout', 'fee', 'refund')
            ),
            CONSTRAINT ck_transactions_amount_gt_0 CHECK (amount > 0)
        );
    """)
    op.execute("CREATE INDEX idx_transactions_user_time ON transactions (user_id, created_at DESC);")
    op.execute("CREATE INDEX idx_transactions_market ON transactions (market_id) WHERE market_id IS NOT NULL;")
    op.execute("""
        CREATE INDEX idx_transactions_pending_refunds
        ON transactions (created_at)
        WHERE type = 'refund' AND payment_signature IS NULL;
    """)
    op.execute("""
        CREATE TRIGGER trg_transactions_guard
            BEFORE UPDATE OR DELETE ON transactions
            FOR EACH ROW EXECUTE FUNCTION fn_guard_transaction_log();
    """)
    op.execute("COMMENT ON TABLE transactions IS 'Stake/payout/fee/refund log — append-only, amounts in lamports';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS transactions CASCADE;")
