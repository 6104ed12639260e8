"""WalletSummaryRepository: concrete implementation of WalletSummaryCacheProtocol.

All queries use raw text() SQL (no ORM).
Inserts are ``ON CONFLICT (account) DO NOTHING``: when another writer stored the
account first, the existing row is read back and returned instead.
created_at / updated_at are filled by column defaults and the update trigger.
"""

from dataclasses import asdict

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ws_common.errors import InternalError
from src.ws_wallet.domain.models import SUMMARY_COLUMNS, WalletSummary

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = ", ".join((*SUMMARY_COLUMNS, "created_at", "updated_at"))

_GET_SUMMARY_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM wallet_summaries
    WHERE account = :account
""")

_INSERT_SUMMARY_SQL = text(f"""
    INSERT INTO wallet_summaries ({", ".join(SUMMARY_COLUMNS)})
    VALUES ({", ".join(f":{c}" for c in SUMMARY_COLUMNS)})
    ON CONFLICT (account) DO NOTHING
    RETURNING {_SELECT_COLUMNS}
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------

def _row_to_summary(row: object) -> WalletSummary:
    data = row._mapping  # type: ignore[attr-defined]
    return WalletSummary(
        **{name: data[name] for name in SUMMARY_COLUMNS},
        created_at=data["created_at"],
        updated_at=data["updated_at"],
    )


def _summary_to_params(summary: WalletSummary) -> dict[str, object]:
    values = asdict(summary)
    return {name: values[name] for name in SUMMARY_COLUMNS}


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------

class WalletSummaryRepository:
    """Summary cache in PostgreSQL. The caller owns commit/rollback."""

    async def find_summary(
        self, db: AsyncSession, account: str
    ) -> WalletSummary | None:
        result = await db.execute(_GET_SUMMARY_SQL, {"account": account})
        row = result.fetchone()
        return _row_to_summary(row) if row else None

    async def create_summary(
        self, db: AsyncSession, summary: WalletSummary
    ) -> WalletSummary:
        result = await db.execute(_INSERT_SUMMARY_SQL, _summary_to_params(summary))
        row = result.fetchone()
        if row is not None:
            return _row_to_summary(row)

        # Lost the insert race: another writer already stored this account
        existing = await self.find_summary(db, summary.account)
        if existing is None:
            raise InternalError(
                f"wallet_summaries conflict for {summary.account} but no row found"
            )
        return existing
