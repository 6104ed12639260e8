"""Warehouse payload → WalletSummary shaping.

Pure functions, no I/O. Applied once, on a cache miss, before the summary
is persisted.

Rounding:
  - currency totals and balances: 2 places
  - last-transaction ``amount``: 2 places
  - top-N breakdown amounts: 0 places (stored as integers)
  Half-up on the decimal representation; non-numbers, booleans, NaN and
  infinities pass through unchanged.

Column values are coerced to what the store accepts: counts to int, other
numbers to finite floats. Numeric text is parsed; NaN, infinities and
non-numbers fall back to 0.

Dates are coerced only for the top-level fields declared in DATE_FIELDS.
String content is never used to guess a type.
"""

import json
import math
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from src.ws_common.datetime_utils import parse_datetime
from src.ws_wallet.domain.models import WalletSummary

CURRENCY_DECIMALS = 2
NESTED_AMOUNT_DECIMALS = 0

# Top-level warehouse fields holding a calendar date or timestamp.
DATE_FIELDS: tuple[str, ...] = (
    "first_txn_time",
    "last_txn_time",
    "most_active_day",
    "most_active_month",
    "last_transaction_timestamp",
    "last_nonxlm_transaction_timestamp",
    "last_xlm_transaction_timestamp",
)

# Rounded to CURRENCY_DECIMALS.
CURRENCY_FIELDS: tuple[str, ...] = (
    "total_sent_xlm",
    "total_received_xlm",
    "total_selling_xlm",
    "total_buying_xlm",
    "net_pnl_xlm",
    "token_balance",
    "starting_balance",
    "balance_diff",
)

# Stored as integers (BIGINT columns).
COUNT_FIELDS: tuple[str, ...] = (
    "total_transactions",
    "unique_wallet_interactions",
    "top_interaction_count",
    "most_active_day_count",
    "most_active_month_count",
)

# Stored as floats, unrounded.
MEASURE_FIELDS: tuple[str, ...] = ("time_on_chain_days",)

# warehouse prefix → summary column
LAST_TRANSACTION_FIELDS: dict[str, str] = {
    "last_transaction": "last_transaction_details",
    "last_nonxlm_transaction": "last_nonxlm_transaction_details",
    "last_xlm_transaction": "last_xlm_transaction_details",
}

# warehouse field → (summary column, amount key inside each entry)
TOP_N_FIELDS: dict[str, tuple[str, str]] = {
    "top_1_largest_nonxlm": ("top_largest_nonxlm", "nonxlm_amount"),
    "top_1_largest_xlm": ("top_largest_xlm", "xlm_amount"),
    "top_1_nonxlm_sent": ("top_nonxlm_sent", "total_sent"),
    "top_1_nonxlm_received": ("top_nonxlm_received", "total_received"),
    "top_1_nonxlm_selling": ("top_nonxlm_selling", "total_selling"),
    "top_1_nonxlm_buying": ("top_nonxlm_buying", "total_buying"),
}


def round_amount(value: Any, decimals: int = CURRENCY_DECIMALS) -> Any:
    """Round a number to ``decimals`` places; anything else is returned as-is."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    if isinstance(value, int):
        return value
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-decimals)
    rounded = Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if decimals <= 0:
        return int(rounded)
    return float(rounded)


def to_float(value: Any) -> float:
    """Value for a DOUBLE PRECISION column.

    BigQuery JSON renders non-finite FLOAT64 as "NaN"/"Infinity" and large
    INT64 as quoted digits. Numeric text is parsed; anything that is not a
    finite number afterwards becomes 0.0.
    """
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    number = float(value)
    return number if math.isfinite(number) else 0.0


def to_count(value: Any) -> int:
    """Value for a BIGINT column; integer text is parsed exactly."""
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return int(to_float(value))


def coerce_dates(payload: dict[str, Any], date_fields: tuple[str, ...] = DATE_FIELDS) -> dict[str, Any]:
    """Return a copy of ``payload`` with declared date fields parsed.

    A declared field whose value does not parse as a calendar date-time is
    left untouched.
    """
    coerced = dict(payload)
    for name in date_fields:
        value = coerced.get(name)
        if isinstance(value, str):
            parsed = parse_datetime(value)
            if parsed is not None:
                coerced[name] = parsed
    return coerced


def format_month(value: Any) -> str:
    """Full calendar date → "YYYY-MM"; other truthy values as text; falsy → ""."""
    if isinstance(value, datetime):
        return f"{value.year:04d}-{value.month:02d}"
    if not value:
        return ""
    return str(value)


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def to_json_text(value: Any) -> str:
    return json.dumps(value, default=_json_default, separators=(",", ":"))


def _load_nested(value: Any) -> Any:
    """Nested values may arrive as JSON text; decode them when they do."""
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            return value
    return value


def _as_datetime(value: Any) -> datetime | None:
    return value if isinstance(value, datetime) else None


def shape_last_transaction(payload: dict[str, Any], prefix: str) -> str:
    """Collapse the flat ``<prefix>_*`` fields into one JSON object text."""
    details = {
        "id": payload.get(f"{prefix}_id") or None,
        "op_type_int": payload.get(f"{prefix}_type_int") or None,
        "op_type_str": payload.get(f"{prefix}_type_str") or None,
        "timestamp": payload.get(f"{prefix}_timestamp") or None,
        "asset_code": payload.get(f"{prefix}_asset_code") or None,
        "amount": round_amount(payload.get(f"{prefix}_amount") or None, CURRENCY_DECIMALS),
    }
    return to_json_text(details)


def shape_top_entries(value: Any, amount_field: str) -> str:
    """Serialize a top-N list with ``amount_field`` rounded in every entry."""
    entries = _load_nested(value) or []
    if isinstance(entries, list):
        entries = [
            {**entry, amount_field: round_amount(entry[amount_field], NESTED_AMOUNT_DECIMALS)}
            if isinstance(entry, dict) and amount_field in entry
            else entry
            for entry in entries
        ]
    return to_json_text(entries)


def shape_category_breakdown(value: Any) -> str:
    if not value:
        return ""
    if isinstance(value, str):
        return value
    return to_json_text(value)


def shape_summary(account: str, payload: dict[str, Any]) -> WalletSummary:
    """Map one warehouse row payload to the canonical WalletSummary."""
    raw = coerce_dates(payload)

    values: dict[str, Any] = {}
    for name in COUNT_FIELDS:
        values[name] = to_count(raw.get(name))
    for name in MEASURE_FIELDS:
        values[name] = to_float(raw.get(name))
    for name in CURRENCY_FIELDS:
        values[name] = round_amount(to_float(raw.get(name)), CURRENCY_DECIMALS)
    for prefix, column in LAST_TRANSACTION_FIELDS.items():
        values[column] = shape_last_transaction(raw, prefix)
    for source_name, (column, amount_field) in TOP_N_FIELDS.items():
        values[column] = shape_top_entries(raw.get(source_name), amount_field)

    return WalletSummary(
        account=account,
        is_missing=False,
        first_txn_time=_as_datetime(raw.get("first_txn_time")),
        last_txn_time=_as_datetime(raw.get("last_txn_time")),
        top_interaction_wallet=raw.get("top_interaction_wallet") or None,
        most_active_day=_as_datetime(raw.get("most_active_day")),
        most_active_month=format_month(raw.get("most_active_month")),
        top_5_transactions_by_category=shape_category_breakdown(
            raw.get("top_5_transactions_by_category")
        ),
        **values,
    )
