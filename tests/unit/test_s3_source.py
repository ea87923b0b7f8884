"""Unit tests for S3Source adapter."""

import json

import boto3
import pytest
from moto import mock_aws


@pytest.fixture
def s3_client():
    """Create a mocked S3 client with a test bucket."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket="test-bucket")
        yield client


@pytest.mark.sources
@pytest.mark.tier(1)
class TestS3Source:
    """Tests for fetching records from S3."""

    @pytest.mark.anyio
    async def test_reads_json_object(self, s3_client) -> None:
        from freshsync.adapters.sources import S3Source

        s3_client.put_object(
            Bucket="test-bucket",
            Key="data/orders.json",
            Body=json.dumps([{"id": 1}, {"id": 2}]).encode(),
        )

        source = S3Source("s3://test-bucket/data/orders.json", client=s3_client)

        outcome = await source()

        assert outcome.items == ({"id": 1}, {"id": 2})
        assert outcome.total_count == 2

    @pytest.mark.anyio
    async def test_reads_csv_object(self, s3_client) -> None:
        from freshsync.adapters.sources import S3Source

        s3_client.put_object(
            Bucket="test-bucket", Key="companies.csv", Body=b"name,score\nAcme,7\n"
        )

        outcome = await S3Source("s3://test-bucket/companies.csv", client=s3_client)()

        assert outcome.items == ({"name": "Acme", "score": 7},)

    @pytest.mark.anyio
    async def test_missing_key(self, s3_client) -> None:
        from freshsync.adapters.sources import S3Source
        from freshsync.core.exceptions import SourceNotFoundError

        source = S3Source("s3://test-bucket/missing.json", client=s3_client)

        with pytest.raises(SourceNotFoundError):
            await source()

    @pytest.mark.anyio
    async def test_missing_bucket(self, s3_client) -> None:
        from freshsync.adapters.sources import S3Source
        from freshsync.core.exceptions import SourceNotFoundError

        source = S3Source("s3://no-such-bucket/a.json", client=s3_client)

        with pytest.raises(SourceNotFoundError):
            await source()

    def test_invalid_uri(self, s3_client) -> None:
        from freshsync.adapters.sources import S3Source

        with pytest.raises(ValueError, match="missing key"):
            S3Source("s3://bucket-only", client=s3_client)


@pytest.mark.sources
@pytest.mark.tier(0)
class TestTranslateClientError:
    """Tests for mapping botocore errors to source errors."""

    def _error(self, code: str):
        from botocore.exceptions import ClientError

        return ClientError({"Error": {"Code": code, "Message": "x"}}, "GetObject")

    def test_access_denied(self) -> None:
        from freshsync.adapters.sources.s3 import translate_client_error
        from freshsync.core.exceptions import SourceAccessError

        err = translate_client_error(self._error("AccessDenied"), "s3://b/k")

        assert isinstance(err, SourceAccessError)

    def test_other_codes_keep_code(self) -> None:
        """Unmapped codes are preserved for retry classification."""
        from freshsync.adapters.sources.s3 import translate_client_error
        from freshsync.core.backoff import is_retryable

        expired = translate_client_error(self._error("ExpiredToken"), "s3://b/k")
        throttled = translate_client_error(self._error("SlowDown"), "s3://b/k")

        assert expired.code == "ExpiredToken"
        assert is_retryable(expired) is False
        assert is_retryable(throttled) is True
