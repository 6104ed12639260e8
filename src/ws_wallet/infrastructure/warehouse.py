"""WalletWarehouse: BigQuery source of truth for precomputed summaries.

The snapshot table is partitioned on ``hashed_account``; the query repeats the
partitioning expression so BigQuery prunes to one partition. The account is
always a bound ``@account`` parameter. Each row carries its whole payload as
JSON text in ``row_data``.

The google-cloud-bigquery client is synchronous, so queries run in a worker
thread. The time budget is enforced here (job timeout + result wait); callers
add none of their own.
"""

import asyncio
import json
import logging
import re
from typing import Any

from google.api_core import exceptions as gcp_exceptions
from google.cloud import bigquery

from config.settings import Settings
from src.ws_common.errors import UpstreamError, UpstreamTimeoutError

logger = logging.getLogger(__name__)

_TABLE_RE = re.compile(r"^[A-Za-z0-9_-]+(\.[A-Za-z0-9_-]+){1,2}$")

_SUMMARY_QUERY = """
    WITH user_row AS (
      SELECT row_data
      FROM `{table}`
      WHERE
        ABS(MOD(FARM_FINGERPRINT(@account), 10)) = hashed_account
        AND account = @account
      LIMIT 1
    )
    SELECT row_data FROM user_row
"""


def create_bigquery_client(settings: Settings) -> bigquery.Client:
    """Client with Application Default Credentials; close() it on shutdown."""
    return bigquery.Client(
        project=settings.BIGQUERY_PROJECT_ID,
        location=settings.BIGQUERY_LOCATION,
    )


def is_timeout(exc: BaseException) -> bool:
    """True for client-side waits and server-side job timeouts alike."""
    if isinstance(exc, (TimeoutError, gcp_exceptions.DeadlineExceeded)):
        return True
    return "timed out" in str(exc).lower()


def decode_row_data(row_data: Any) -> dict[str, Any]:
    """``row_data`` is JSON text (STRING column) or already decoded (JSON column)."""
    payload = json.loads(row_data) if isinstance(row_data, (str, bytes)) else row_data
    if not isinstance(payload, dict):
        raise ValueError(f"row_data is not a JSON object: {type(payload).__name__}")
    return payload


class WalletWarehouse:
    def __init__(
        self,
        client: bigquery.Client,
        table: str,
        location: str = "US",
        timeout_seconds: float = 30.0,
    ) -> None:
        if not _TABLE_RE.match(table):
            raise ValueError(f"Invalid BigQuery table name: {table!r}")
        self._client = client
        self._location = location
        self._timeout = timeout_seconds
        self._query = _SUMMARY_QUERY.format(table=table)

    @classmethod
    def from_settings(cls, client: bigquery.Client, settings: Settings) -> "WalletWarehouse":
        return cls(
            client,
            table=settings.BIGQUERY_SUMMARY_TABLE,
            location=settings.BIGQUERY_LOCATION,
            timeout_seconds=settings.BIGQUERY_QUERY_TIMEOUT_SECONDS,
        )

    async def fetch_summary_payload(self, account: str) -> dict[str, Any] | None:
        try:
            rows = await asyncio.to_thread(self._run_query, account)
        except Exception as exc:
            if is_timeout(exc):
                logger.warning("BigQuery query timed out for account %s", account)
                raise UpstreamTimeoutError() from exc
            logger.error("BigQuery query error for account %s: %s", account, exc)
            raise UpstreamError() from exc

        if not rows:
            logger.warning("BigQuery returned no rows for account: %s", account)
            return None

        try:
            return decode_row_data(rows[0]["row_data"])
        except (KeyError, ValueError) as exc:
            logger.error("Malformed row_data for account %s: %s", account, exc)
            raise UpstreamError() from exc

    def _run_query(self, account: str) -> list[Any]:
        job_config = bigquery.QueryJobConfig(
            query_parameters=[
                bigquery.ScalarQueryParameter("account", "STRING", account),
            ],
            job_timeout_ms=int(self._timeout * 1000),
        )
        job = self._client.query(self._query, job_config=job_config, location=self._location)
        return list(job.result(timeout=self._timeout))
