"""Typed exception hierarchy. Every error orgquery can raise."""


class OrgQueryError(Exception):
    """Base exception for all orgquery errors."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


# ── Configuration ──────────────────────────────────────────────────────────


class ConfigurationError(OrgQueryError):
    """Tenant database secret is missing, unparseable, or incomplete for its provider."""
    def __init__(self, message: str, tenant_id: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.tenant_id = tenant_id


class UnsupportedProviderError(ConfigurationError):
    """Secret declares a provider tag this build does not know."""
    def __init__(self, message: str, provider: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.provider = provider


class SecretNotFound(OrgQueryError):
    """No secret is stored under the requested name."""
    def __init__(self, message: str, secret_name: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.secret_name = secret_name


class SecretStoreError(OrgQueryError):
    """Secret store unreachable, or the stored value could not be decrypted."""
    def __init__(self, message: str, secret_name: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.secret_name = secret_name


# ── Query execution ────────────────────────────────────────────────────────


class BackendError(OrgQueryError):
    """Base for failures that happen while talking to a tenant backend.

    ``query`` holds at most the first 100 characters of the statement.
    """
    def __init__(self, message: str, tenant_id: str = "", query: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.tenant_id = tenant_id
        self.query = query


class BackendConnectionError(BackendError):
    """Network or authentication failure reaching a backend."""
    pass


class QueryExecutionError(BackendError):
    """Malformed SQL, permission denial, or any backend-side failure."""
    pass


class InvalidIdentifierError(OrgQueryError):
    """A table name failed the ``[A-Za-z0-9_]+`` check."""
    def __init__(self, message: str, identifier: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.identifier = identifier


# ── LLM ────────────────────────────────────────────────────────────────────


class LLMError(OrgQueryError):
    """LLM provider call failed or timed out."""
    pass
