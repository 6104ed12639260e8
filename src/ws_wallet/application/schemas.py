"""Pydantic schemas and address validation for ws_wallet.

Stellar public keys (StrKey "G..." form) are exactly 56 characters of
RFC 4648 base32 (A-Z, 2-7) starting with "G".
"""

import re

from pydantic import BaseModel

from src.ws_common.datetime_utils import isoformat_or_none
from src.ws_common.errors import InvalidWalletAddressError
from src.ws_wallet.domain.models import WalletSummary

WALLET_ADDRESS_LENGTH = 56
_WALLET_ADDRESS_RE = re.compile(r"^G[A-Z2-7]{55}$")


def validate_wallet_address(address: str) -> str:
    """Return ``address`` unchanged or raise InvalidWalletAddressError."""
    if len(address) != WALLET_ADDRESS_LENGTH:
        raise InvalidWalletAddressError(
            "Wallet address must be exactly 56 characters long."
        )
    if not _WALLET_ADDRESS_RE.match(address):
        raise InvalidWalletAddressError(
            'Wallet address must start with "G" and contain valid Stellar base32 characters.'
        )
    return address


class WalletSummaryResponse(BaseModel):
    """Flattened summary; nested breakdowns stay JSON text."""

    account: str
    is_missing: bool

    total_transactions: int
    total_sent_xlm: float
    total_received_xlm: float
    total_selling_xlm: float
    total_buying_xlm: float
    net_pnl_xlm: float

    time_on_chain_days: float
    first_txn_time: str | None
    last_txn_time: str | None

    last_transaction_details: str
    last_nonxlm_transaction_details: str
    last_xlm_transaction_details: str

    top_largest_nonxlm: str
    top_largest_xlm: str
    top_nonxlm_sent: str
    top_nonxlm_received: str
    top_nonxlm_selling: str
    top_nonxlm_buying: str

    unique_wallet_interactions: int
    top_interaction_wallet: str | None
    top_interaction_count: int

    most_active_day: str | None
    most_active_day_count: int
    most_active_month: str
    most_active_month_count: int
    top_5_transactions_by_category: str

    token_balance: float
    starting_balance: float
    balance_diff: float

    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, s: WalletSummary) -> "WalletSummaryResponse":
        return cls(
            account=s.account,
            is_missing=s.is_missing,
            total_transactions=s.total_transactions,
            total_sent_xlm=s.total_sent_xlm,
            total_received_xlm=s.total_received_xlm,
            total_selling_xlm=s.total_selling_xlm,
            total_buying_xlm=s.total_buying_xlm,
            net_pnl_xlm=s.net_pnl_xlm,
            time_on_chain_days=s.time_on_chain_days,
            first_txn_time=isoformat_or_none(s.first_txn_time),
            last_txn_time=isoformat_or_none(s.last_txn_time),
            last_transaction_details=s.last_transaction_details,
            last_nonxlm_transaction_details=s.last_nonxlm_transaction_details,
            last_xlm_transaction_details=s.last_xlm_transaction_details,
            top_largest_nonxlm=s.top_largest_nonxlm,
            top_largest_xlm=s.top_largest_xlm,
            top_nonxlm_sent=s.top_nonxlm_sent,
            top_nonxlm_received=s.top_nonxlm_received,
            top_nonxlm_selling=s.top_nonxlm_selling,
            top_nonxlm_buying=s.top_nonxlm_buying,
            unique_wallet_interactions=s.unique_wallet_interactions,
            top_interaction_wallet=s.top_interaction_wallet,
            top_interaction_count=s.top_interaction_count,
            most_active_day=isoformat_or_none(s.most_active_day),
            most_active_day_count=s.most_active_day_count,
            most_active_month=s.most_active_month,
            most_active_month_count=s.most_active_month_count,
            top_5_transactions_by_category=s.top_5_transactions_by_category,
            token_balance=s.token_balance,
            starting_balance=s.starting_balance,
            balance_diff=s.balance_diff,
            created_at=isoformat_or_none(s.created_at),
            updated_at=isoformat_or_none(s.updated_at),
        )
