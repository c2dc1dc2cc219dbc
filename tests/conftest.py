import os
import sys

import pytest

# Allow running the suite without installing the package
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src")))


@pytest.fixture(scope="function", autouse=True)
def mock_env_vars(monkeypatch):
    """Set mock environment variables to prevent accidental cloud calls."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")
    monkeypatch.setenv("AWS_REGION", "eu-west-1")
    monkeypatch.setenv("ELASTICSEARCH_DOMAIN", "search-test.eu-west-1.es.amazonaws.com")
    monkeypatch.delenv("ELASTICSEARCH_TIMEOUT", raising=False)
    monkeypatch.delenv("AWS_PROFILE", raising=False)


@pytest.fixture
def fixed_clock():
    """Clock returning a constant epoch-millis timestamp."""
    return lambda: 1700000000000


@pytest.fixture
def es_config():
    from botocore.credentials import ReadOnlyCredentials
    from pelion_indexer.config import ElasticsearchConfig

    return ElasticsearchConfig(
        region="eu-west-1",
        host="search-test.eu-west-1.es.amazonaws.com",
        credentials=ReadOnlyCredentials("AKIDEXAMPLE", "secret", None),
        timeout=5.0,
    )
