"""
Runtime configuration for the indexer.

All settings come from the Lambda environment and are read once on cold
start. The resulting ElasticsearchConfig is immutable and injected into
SignedHttpClient instead of living in module-level globals.
"""

import os
from dataclasses import dataclass
from typing import Optional

import boto3
from botocore.credentials import ReadOnlyCredentials

from pelion_indexer import constants as CONSTANTS
from pelion_indexer.exceptions import ConfigurationError


def require_env(name: str) -> str:
    """
    Get required environment variable or raise error.

    Args:
        name: The environment variable name

    Returns:
        The stripped environment variable value

    Raises:
        ConfigurationError: If the variable is missing or empty
    """
    value = os.environ.get(name, "").strip()
    if not value:
        raise ConfigurationError(
            f"CRITICAL: Required environment variable '{name}' is missing or empty",
            variable=name
        )
    return value


def normalize_host(domain: str) -> str:
    """Strip scheme and trailing slashes, ``https://search-x.es.amazonaws.com/`` -> ``search-x.es.amazonaws.com``."""
    host = domain.strip()
    for scheme in ("https://", "http://"):
        if host.lower().startswith(scheme):
            host = host[len(scheme):]
            break
    return host.split("/", 1)[0]


def _read_timeout() -> float:
    raw = os.environ.get(CONSTANTS.ENV_TIMEOUT, "").strip()
    if not raw:
        return float(CONSTANTS.DEFAULT_TIMEOUT)
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigurationError(
            f"{CONSTANTS.ENV_TIMEOUT} must be a number of seconds, got '{raw}'",
            variable=CONSTANTS.ENV_TIMEOUT
        )
    if timeout <= 0:
        raise ConfigurationError(
            f"{CONSTANTS.ENV_TIMEOUT} must be positive, got '{raw}'",
            variable=CONSTANTS.ENV_TIMEOUT
        )
    return timeout


@dataclass(frozen=True)
class ElasticsearchConfig:
    """
    Connection settings for the Elasticsearch domain.

    Attributes:
        region: AWS region used in the SigV4 credential scope
        host: Domain hostname, also sent as the Host header
        credentials: Frozen AWS credentials used for signing
        timeout: Connect and read timeout in seconds
    """

    region: str
    host: str
    credentials: ReadOnlyCredentials
    timeout: float = float(CONSTANTS.DEFAULT_TIMEOUT)

    @property
    def base_url(self) -> str:
        return f"https://{self.host}"

    @classmethod
    def from_env(cls, session: Optional[boto3.Session] = None) -> "ElasticsearchConfig":
        """
        Build the configuration from the process environment.

        Credentials are resolved through the boto3 credential chain (the
        Lambda runtime injects them as AWS_* variables) and frozen so the
        config never changes after startup.

        Raises:
            ConfigurationError: If region, domain or credentials are missing
        """
        region = require_env(CONSTANTS.ENV_REGION)
        host = normalize_host(require_env(CONSTANTS.ENV_DOMAIN))
        if not host:
            raise ConfigurationError(
                f"{CONSTANTS.ENV_DOMAIN} does not contain a hostname",
                variable=CONSTANTS.ENV_DOMAIN
            )

        session = session or boto3.Session(region_name=region)
        credentials = session.get_credentials()
        if credentials is None:
            raise ConfigurationError("CRITICAL: No AWS credentials available for request signing")
        frozen = credentials.get_frozen_credentials()
        if not frozen.access_key or not frozen.secret_key:
            raise ConfigurationError("CRITICAL: AWS credentials are incomplete (access key or secret missing)")

        return cls(
            region=region,
            host=host,
            credentials=frozen,
            timeout=_read_timeout()
        )
