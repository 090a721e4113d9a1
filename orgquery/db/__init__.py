from orgquery.db.resolver import ConnectionResolver, parse_database_secret
from orgquery.db.adapter import QueryAdapter, validate_identifier
from orgquery.db.serverless import ServerlessSqlClient
from orgquery.db.data_api import RemoteDataApiClient

__all__ = [
    "ConnectionResolver",
    "parse_database_secret",
    "QueryAdapter",
    "validate_identifier",
    "ServerlessSqlClient",
    "RemoteDataApiClient",
]
