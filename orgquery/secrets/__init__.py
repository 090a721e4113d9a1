from orgquery.secrets.store import (
    SecretStore,
    EncryptedSecretStore,
    AwsSecretsManagerStore,
    build_secret_store,
    tenant_secret_name,
)

__all__ = [
    "SecretStore",
    "EncryptedSecretStore",
    "AwsSecretsManagerStore",
    "build_secret_store",
    "tenant_secret_name",
]
