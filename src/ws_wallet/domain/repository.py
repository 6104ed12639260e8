# src/ws_wallet/domain/repository.py
"""Collaborator Protocols: dependency inversion for testability.

Unit tests inject mocks that conform to these Protocols.
The infrastructure layer provides the real implementations:
  - WalletSummaryRepository (PostgreSQL summary cache)
  - WalletWarehouse (BigQuery source of truth)
"""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ws_wallet.domain.models import WalletSummary


class WalletSummaryCacheProtocol(Protocol):
    async def find_summary(
        self,
        db: AsyncSession,
        account: str,
    ) -> WalletSummary | None: ...

    async def create_summary(
        self,
        db: AsyncSession,
        summary: WalletSummary,
    ) -> WalletSummary:
        """Insert once per account; returns the stored row (an existing one on conflict)."""
        ...


class WalletSummarySourceProtocol(Protocol):
    async def fetch_summary_payload(self, account: str) -> dict[str, Any] | None:
        """Raw row payload, or None when the warehouse has no row for ``account``.

        Raises UpstreamTimeoutError / UpstreamError on failure.
        """
        ...
