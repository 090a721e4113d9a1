"""Remote data-API client (RDS Data API via boto3).

One boto3 ``rds-data`` client per region; the cluster, credentials secret and
database are passed per call, so every tenant on a region shares a client.
"""

import asyncio
import logging
from typing import Any, Optional, Sequence

from orgquery.db.marshaller import encode_parameters, records_to_rows, rewrite_placeholders
from orgquery.exceptions import BackendConnectionError, QueryExecutionError
from orgquery.types import RemoteDataApiConfig

logger = logging.getLogger(__name__)

# Error codes that mean "could not reach / authenticate", not "bad statement".
_CONNECTION_CODES = frozenset({
    "AccessDeniedException",
    "ForbiddenException",
    "ServiceUnavailableError",
    "DatabaseUnavailableException",
    "DatabaseNotFoundException",
    "DatabaseResumingException",
    "HttpEndpointNotEnabledException",
    "InvalidSecretException",
    "SecretsErrorException",
    "UnrecognizedClientException",
    "ExpiredTokenException",
})


class RemoteDataApiClient:
    """Region-scoped wrapper around ``boto3.client("rds-data")``.

    Args:
        region: AWS region of the clusters served by this client.
        client: Pre-built boto3 client (tests inject a stub).
    """

    def __init__(self, region: str, client: Optional[Any] = None) -> None:
        self.region = region
        self._client = client  # lazy load boto3 client

    def _get_client(self):
        if self._client is None:
            import boto3
            self._client = boto3.client("rds-data", region_name=self.region)
        return self._client

    async def query(
        self,
        db_config: RemoteDataApiConfig,
        sql: str,
        params: Sequence[Any] = (),
    ) -> list[dict[str, Any]]:
        """Rewrite, encode, execute, and decode one statement.

        Raises:
            BackendConnectionError: endpoint, credential, or availability failure.
            QueryExecutionError: the statement itself failed.
        """
        from botocore.exceptions import BotoCoreError, ClientError

        request: dict[str, Any] = {
            "resourceArn": db_config.resource_arn,
            "secretArn": db_config.secret_arn,
            "database": db_config.database,
            "sql": rewrite_placeholders(sql),
            "includeResultMetadata": True,
        }
        if params:
            request["parameters"] = encode_parameters(params)

        client = self._get_client()
        try:
            response = await asyncio.to_thread(client.execute_statement, **request)
        except ClientError as exc:
            error = exc.response.get("Error", {})
            code = error.get("Code", "")
            message = error.get("Message", str(exc))
            if code in _CONNECTION_CODES:
                raise BackendConnectionError(f"Data API unavailable ({code}): {message}") from exc
            raise QueryExecutionError(f"Data API statement failed ({code}): {message}") from exc
        except BotoCoreError as exc:
            raise BackendConnectionError(f"Data API request failed: {exc}") from exc

        return records_to_rows(
            response.get("records") or [],
            response.get("columnMetadata") or [],
        )
