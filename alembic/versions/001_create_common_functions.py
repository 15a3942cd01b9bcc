"""001: create trigger functions shared by the ledger tables

Revision ID: 001
Revises:
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_update_timestamp()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = NOW();
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    # Transaction rows are never deleted; only the payout signature of a
    # refund may be filled in after the fact.
    op.execute("""
        CREATE OR REPLACE FUNCTION fn_guard_transaction_log()
        RETURNS TRIGGER AS $$
        BEGIN
            IF TG_OP = 'DELETE' THEN
                RAISE EXCEPTION 'transactions are append-only (id=%)', OLD.id;
            END IF;
            IF NEW.user_id IS DISTINCT FROM OLD.user_id
               OR NEW.market_id IS DISTINCT FROM OLD.market_id
               OR NEW.type IS DISTINCT FROM OLD.type
               OR NEW.amount IS DISTINCT FROM OLD.amount
               OR OLD.payment_signature IS NOT NULL THEN
                RAISE EXCEPTION 'transaction % is immutable', OLD.id;
            END IF;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)


def downgrade() -> None:
    op.execute("DROP FUNCTION IF EXISTS fn_guard_transaction_log();")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
