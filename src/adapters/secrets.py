"""
Secrets Provider Abstraction

Provides pluggable retrieval of bot channel secret keys for local development
and AWS deployment.
"""

import json
import os
from abc import ABC, abstractmethod
from typing import Optional

LOCAL_SECRET_ENV_VARS = ["BOT_CHANNEL_SECRET", "WEBHOOK_SECRET"]


class SecretsProvider(ABC):
    """Abstract base class for secrets providers."""

    @abstractmethod
    def get_secret(self, secret_name: str) -> str:
        """
        Retrieve a secret value by name.

        Args:
            secret_name: Name/ID of the secret to retrieve

        Returns:
            Secret value as string

        Raises:
            SecretsError: If secret cannot be retrieved
        """
        pass


class SecretsError(Exception):
    """Raised when a secret cannot be retrieved."""

    pass


def _unwrap_secret(value: str) -> str:
    # Secrets may be stored as plain strings or as {"secret_key": "..."}
    try:
        secret_dict = json.loads(value)
    except json.JSONDecodeError:
        return value
    if isinstance(secret_dict, dict):
        return secret_dict.get("secret_key", value)
    return value


class AWSSecretsProvider(SecretsProvider):
    """
    AWS Secrets Manager provider.

    Retrieves secrets from AWS Secrets Manager. Used in production Lambda environment.
    """

    def __init__(self):
        import boto3

        self._client = boto3.client("secretsmanager")

    def get_secret(self, secret_name: str) -> str:
        """Retrieve secret from AWS Secrets Manager."""
        from botocore.exceptions import ClientError

        try:
            response = self._client.get_secret_value(SecretId=secret_name)
        except ClientError as e:
            raise SecretsError(f"Failed to retrieve secret '{secret_name}': {str(e)}")

        if "SecretString" not in response:
            raise SecretsError(f"Secret '{secret_name}' not in expected format")

        return _unwrap_secret(response["SecretString"])


class LocalSecretsProvider(SecretsProvider):
    """
    Local secrets provider for development.

    Retrieves secrets from environment variables or a local secrets file.
    """

    def __init__(self, secrets_file: Optional[str] = None):
        """
        Initialize local secrets provider.

        Args:
            secrets_file: Optional path to JSON file containing secrets
        """
        self._secrets = {}

        if secrets_file and os.path.exists(secrets_file):
            with open(secrets_file, "r") as f:
                self._secrets = json.load(f)

    def get_secret(self, secret_name: str) -> str:
        """
        Retrieve secret from environment or local file.

        Tries, in order:
        1. Exact match in loaded secrets file
        2. Environment variable with exact name
        3. Environment variable with normalized name (slashes -> underscores, uppercase)
        4. Common local dev names (BOT_CHANNEL_SECRET, WEBHOOK_SECRET)
        """
        if secret_name in self._secrets:
            value = self._secrets[secret_name]
            if isinstance(value, dict):
                return value.get("secret_key", json.dumps(value))
            return str(value)

        if secret_name in os.environ:
            return os.environ[secret_name]

        # e.g., "bot/channel-secret/prod" -> "BOT_CHANNEL_SECRET_PROD"
        normalized = secret_name.replace("/", "_").replace("-", "_").upper()
        if normalized in os.environ:
            return os.environ[normalized]

        for key in LOCAL_SECRET_ENV_VARS:
            if key in os.environ:
                return os.environ[key]

        raise SecretsError(
            f"Secret '{secret_name}' not found. "
            f"Set environment variable '{normalized}' or add to secrets file."
        )


def get_secrets_provider(local_mode: bool = False, secrets_file: Optional[str] = None) -> SecretsProvider:
    """
    Factory function to get appropriate secrets provider.

    Args:
        local_mode: If True, use LocalSecretsProvider. If False, use AWSSecretsProvider.
        secrets_file: Optional path to local secrets file (only used in local mode)

    Returns:
        Configured SecretsProvider instance
    """
    # Auto-detect local mode from environment
    if os.environ.get("LOCAL_DEV", "").lower() in ("true", "1", "yes"):
        local_mode = True

    if local_mode:
        return LocalSecretsProvider(secrets_file=secrets_file)
    else:
        return AWSSecretsProvider()
