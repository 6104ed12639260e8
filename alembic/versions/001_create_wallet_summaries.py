"""001: create wallet_summaries table

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
    op.execute("""
        CREATE TABLE wallet_summaries (
            account                         VARCHAR(56)         PRIMARY KEY,
            is_missing                      BOOLEAN             NOT NULL DEFAULT FALSE,

            total_transactions              BIGINT              NOT NULL DEFAULT 0,
            total_sent_xlm                  DOUBLE PRECISION    NOT NULL DEFAULT 0,
            total_received_xlm              DOUBLE PRECISION    NOT NULL DEFAULT 0,
            total_selling_xlm               DOUBLE PRECISION    NOT NULL DEFAULT 0,
            total_buying_xlm                DOUBLE PRECISION    NOT NULL DEFAULT 0,
            net_pnl_xlm                     DOUBLE PRECISION    NOT NULL DEFAULT 0,

            time_on_chain_days              DOUBLE PRECISION    NOT NULL DEFAULT 0,
            first_txn_time                  TIMESTAMPTZ,
            last_txn_time                   TIMESTAMPTZ,

            last_transaction_details        TEXT                NOT NULL DEFAULT '{}',
            last_nonxlm_transaction_details TEXT                NOT NULL DEFAULT '{}',
            last_xlm_transaction_details    TEXT                NOT NULL DEFAULT '{}',

            top_largest_nonxlm              TEXT                NOT NULL DEFAULT '[]',
            top_largest_xlm                 TEXT                NOT NULL DEFAULT '[]',
            top_nonxlm_sent                 TEXT                NOT NULL DEFAULT '[]',
            top_nonxlm_received             TEXT                NOT NULL DEFAULT '[]',
            top_nonxlm_selling              TEXT                NOT NULL DEFAULT '[]',
            top_nonxlm_buying               TEXT                NOT NULL DEFAULT '[]',

            unique_wallet_interactions      BIGINT              NOT NULL DEFAULT 0,
            top_interaction_wallet          TEXT,
            top_interaction_count           BIGINT              NOT NULL DEFAULT 0,

            most_active_day                 TIMESTAMPTZ,
            most_active_day_count           BIGINT              NOT NULL DEFAULT 0,
            most_active_month               VARCHAR(32)         NOT NULL DEFAULT '',
            most_active_month_count         BIGINT              NOT NULL DEFAULT 0,
            top_5_transactions_by_category  TEXT                NOT NULL DEFAULT '',

            token_balance                   DOUBLE PRECISION    NOT NULL DEFAULT 0,
            starting_balance                DOUBLE PRECISION    NOT NULL DEFAULT 0,
            balance_diff                    DOUBLE PRECISION    NOT NULL DEFAULT 0,

            created_at                      TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            updated_at                      TIMESTAMPTZ         NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wallet_summaries_account CHECK (account ~ '^G[A-Z2-7]{55}$')
        );
    """)
    op.execute("CREATE INDEX idx_wallet_summaries_is_missing ON wallet_summaries (is_missing);")
    op.execute("""
        CREATE TRIGGER trg_wallet_summaries_updated_at
            BEFORE UPDATE ON wallet_summaries
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute(
        "COMMENT ON TABLE wallet_summaries IS "
        "'Wallet activity summary cache: one row per account; is_missing rows are negative-cache markers';"
    )


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_summaries CASCADE;")
    op.execute("DROP FUNCTION IF EXISTS fn_update_timestamp();")
