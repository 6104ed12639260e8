"""Domain models for ws_wallet: pure dataclasses, no business logic."""

from dataclasses import dataclass, field, fields
from datetime import datetime


@dataclass
class WalletSummary:
    """One cached summary row per account.

    Either a full summary (is_missing=False) or a negative-cache marker
    (is_missing=True, every other field left at its default). Nested
    structures are JSON text, not sub-documents.
    """

    account: str
    is_missing: bool = False

    # Transaction stats
    total_transactions: int = 0
    total_sent_xlm: float = 0
    total_received_xlm: float = 0
    total_selling_xlm: float = 0
    total_buying_xlm: float = 0
    net_pnl_xlm: float = 0

    # Time stats
    time_on_chain_days: float = 0
    first_txn_time: datetime | None = None
    last_txn_time: datetime | None = None

    # Last transaction, JSON object text
    last_transaction_details: str = "{}"
    last_nonxlm_transaction_details: str = "{}"
    last_xlm_transaction_details: str = "{}"

    # Top-N breakdowns, JSON array text
    top_largest_nonxlm: str = "[]"
    top_largest_xlm: str = "[]"
    top_nonxlm_sent: str = "[]"
    top_nonxlm_received: str = "[]"
    top_nonxlm_selling: str = "[]"
    top_nonxlm_buying: str = "[]"

    # Interactions
    unique_wallet_interactions: int = 0
    top_interaction_wallet: str | None = None
    top_interaction_count: int = 0

    # Most active day/month
    most_active_day: datetime | None = None
    most_active_day_count: int = 0
    most_active_month: str = ""
    most_active_month_count: int = 0
    top_5_transactions_by_category: str = ""

    # Balances
    token_balance: float = 0
    starting_balance: float = 0
    balance_diff: float = 0

    # Store-managed
    created_at: datetime | None = field(default=None, compare=False)
    updated_at: datetime | None = field(default=None, compare=False)

    @classmethod
    def missing(cls, account: str) -> "WalletSummary":
        """Negative-cache marker for an account the warehouse does not know."""
        return cls(account=account, is_missing=True)


# Columns written on insert, in table order; timestamps are left to the store.
SUMMARY_COLUMNS: tuple[str, ...] = tuple(
    f.name for f in fields(WalletSummary) if f.name not in ("created_at", "updated_at")
)
