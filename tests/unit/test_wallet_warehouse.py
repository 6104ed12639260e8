# tests/unit/test_wallet_warehouse.py
"""Unit tests for WalletWarehouse using a MagicMock BigQuery client."""
import json
from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as gcp_exceptions

from src.ws_common.errors import UpstreamError, UpstreamTimeoutError
from src.ws_wallet.infrastructure.warehouse import WalletWarehouse, decode_row_data, is_timeout
from tests.fakes import VALID_ADDRESS

TABLE = "my-project.stellar_wrapped.enriched_user_2024_snapshot_json_partitioned"


def _client(rows=None, error: Exception | None = None) -> MagicMock:
    job = MagicMock()
    if error is not None:
        job.result.side_effect = error
    else:
        job.result.return_value = iter(rows or [])
    client = MagicMock()
    client.query.return_value = job
    return client


class TestFetchSummaryPayload:
    @pytest.mark.asyncio
    async def test_returns_decoded_row_data(self):
        payload = {"total_transactions": 100, "most_active_day": "2023-10-01"}
        client = _client(rows=[{"row_data": json.dumps(payload)}])
        warehouse = WalletWarehouse(client, TABLE, timeout_seconds=5)

        result = await warehouse.fetch_summary_payload(VALID_ADDRESS)

        assert result == payload

    @pytest.mark.asyncio
    async def test_json_column_already_decoded(self):
        client = _client(rows=[{"row_data": {"total_transactions": 3}}])
        warehouse = WalletWarehouse(client, TABLE)

        assert await warehouse.fetch_summary_payload(VALID_ADDRESS) == {"total_transactions": 3}

    @pytest.mark.asyncio
    async def test_no_rows_returns_none(self):
        warehouse = WalletWarehouse(_client(rows=[]), TABLE)

        assert await warehouse.fetch_summary_payload(VALID_ADDRESS) is None

    @pytest.mark.asyncio
    async def test_account_bound_as_query_parameter(self):
        client = _client(rows=[])
        warehouse = WalletWarehouse(client, TABLE, location="EU", timeout_seconds=12)

        await warehouse.fetch_summary_payload(VALID_ADDRESS)

        query = client.query.call_args.args[0]
        kwargs = client.query.call_args.kwargs
        assert VALID_ADDRESS not in query
        assert "@account" in query
        assert f"`{TABLE}`" in query
        assert kwargs["location"] == "EU"
        params = kwargs["job_config"].query_parameters
        assert len(params) == 1
        assert params[0].name == "account"
        assert params[0].value == VALID_ADDRESS
        assert int(kwargs["job_config"].job_timeout_ms) == 12000
        client.query.return_value.result.assert_called_once_with(timeout=12)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            TimeoutError(),
            gcp_exceptions.DeadlineExceeded("deadline"),
            gcp_exceptions.BadRequest("Query timed out. Try again later."),
            gcp_exceptions.InternalServerError("Job execution was cancelled: Job timed out after 30s"),
        ],
    )
    async def test_timeouts_raise_upstream_timeout(self, error):
        warehouse = WalletWarehouse(_client(error=error), TABLE)

        with pytest.raises(UpstreamTimeoutError):
            await warehouse.fetch_summary_payload(VALID_ADDRESS)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            gcp_exceptions.BadRequest("Syntax error"),
            gcp_exceptions.Forbidden("Quota exceeded"),
            RuntimeError("connection reset"),
        ],
    )
    async def test_other_failures_raise_upstream_error(self, error):
        warehouse = WalletWarehouse(_client(error=error), TABLE)

        with pytest.raises(UpstreamError):
            await warehouse.fetch_summary_payload(VALID_ADDRESS)

    @pytest.mark.asyncio
    async def test_query_submission_failure_raises_upstream_error(self):
        client = MagicMock()
        client.query.side_effect = gcp_exceptions.ServiceUnavailable("backend down")
        warehouse = WalletWarehouse(client, TABLE)

        with pytest.raises(UpstreamError):
            await warehouse.fetch_summary_payload(VALID_ADDRESS)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("row", [{"row_data": "{not json"}, {"row_data": "[1, 2]"}, {"other": "x"}])
    async def test_malformed_row_raises_upstream_error(self, row):
        warehouse = WalletWarehouse(_client(rows=[row]), TABLE)

        with pytest.raises(UpstreamError):
            await warehouse.fetch_summary_payload(VALID_ADDRESS)


class TestConstruction:
    @pytest.mark.parametrize("table", ["", "just_a_table", "p.d.t; DROP TABLE x", "p.d.t`"])
    def test_rejects_bad_table_names(self, table):
        with pytest.raises(ValueError):
            WalletWarehouse(MagicMock(), table)

    def test_accepts_dataset_table(self):
        WalletWarehouse(MagicMock(), "stellar_wrapped.snapshot")


class TestHelpers:
    def test_is_timeout_plain_error(self):
        assert is_timeout(ValueError("bad")) is False

    def test_decode_bytes(self):
        assert decode_row_data(b'{"a": 1}') == {"a": 1}
