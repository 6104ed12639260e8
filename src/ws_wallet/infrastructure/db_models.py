"""SQLAlchemy ORM model for the wallet_summaries table.

Used for type reference only: persistence.py uses raw text() SQL.
Alembic migration 001_create_wallet_summaries.py is the authoritative DDL source.
"""

from datetime import datetime

from sqlalchemy import BigInteger, Boolean, Double, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class WalletSummaryORM(Base):
    __tablename__ = "wallet_summaries"

    account: Mapped[str] = mapped_column(Text, primary_key=True)
    is_missing: Mapped[bool] = mapped_column(Boolean, nullable=False)

    total_transactions: Mapped[int] = mapped_column(BigInteger, nullable=False)
    total_sent_xlm: Mapped[float] = mapped_column(Double, nullable=False)
    total_received_xlm: Mapped[float] = mapped_column(Double, nullable=False)
    total_selling_xlm: Mapped[float] = mapped_column(Double, nullable=False)
    total_buying_xlm: Mapped[float] = mapped_column(Double, nullable=False)
    net_pnl_xlm: Mapped[float] = mapped_column(Double, nullable=False)

    time_on_chain_days: Mapped[float] = mapped_column(Double, nullable=False)
    first_txn_time: Mapped[datetime | None] = mapped_column()
    last_txn_time: Mapped[datetime | None] = mapped_column()

    last_transaction_details: Mapped[str] = mapped_column(Text, nullable=False)
    last_nonxlm_transaction_details: Mapped[str] = mapped_column(Text, nullable=False)
    last_xlm_transaction_details: Mapped[str] = mapped_column(Text, nullable=False)

    top_largest_nonxlm: Mapped[str] = mapped_column(Text, nullable=False)
    top_largest_xlm: Mapped[str] = mapped_column(Text, nullable=False)
    top_nonxlm_sent: Mapped[str] = mapped_column(Text, nullable=False)
    top_nonxlm_received: Mapped[str] = mapped_column(Text, nullable=False)
    top_nonxlm_selling: Mapped[str] = mapped_column(Text, nullable=False)
    top_nonxlm_buying: Mapped[str] = mapped_column(Text, nullable=False)

    unique_wallet_interactions: Mapped[int] = mapped_column(BigInteger, nullable=False)
    top_interaction_wallet: Mapped[str | None] = mapped_column(Text)
    top_interaction_count: Mapped[int] = mapped_column(BigInteger, nullable=False)

    most_active_day: Mapped[datetime | None] = mapped_column()
    most_active_day_count: Mapped[int] = mapped_column(BigInteger, nullable=False)
    most_active_month: Mapped[str] = mapped_column(Text, nullable=False)
    most_active_month_count: Mapped[int] = mapped_column(BigInteger, nullable=False)
    top_5_transactions_by_category: Mapped[str] = mapped_column(Text, nullable=False)

    token_balance: Mapped[float] = mapped_column(Double, nullable=False)
    starting_balance: Mapped[float] = mapped_column(Double, nullable=False)
    balance_diff: Mapped[float] = mapped_column(Double, nullable=False)

    created_at: Mapped[datetime] = mapped_column(nullable=False)
    updated_at: Mapped[datetime] = mapped_column(nullable=False)
