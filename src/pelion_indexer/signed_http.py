"""
SigV4-signed HTTP client for the Elasticsearch domain.

Every call builds a fresh request, signs it immediately before sending
(the signature is bound to the current time), streams the response body
into a single buffer and decodes it as JSON when it is not empty.

HTTP error statuses are returned to the caller unchanged; only signing
and transport failures raise TransportError.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Optional, Union

import requests
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.exceptions import BotoCoreError

from pelion_indexer import constants as CONSTANTS
from pelion_indexer.config import ElasticsearchConfig
from pelion_indexer.exceptions import TransportError
from pelion_indexer.logger import get_logger

logger = get_logger(__name__)


@dataclass
class HttpResponse:
    """Fully buffered response from the search engine."""
    status_code: int
    status_message: str
    headers: dict = field(default_factory=dict)
    body: Any = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def join_path(path: str) -> str:
    """Join a request path onto the domain root: ``_bulk`` and ``/_bulk`` both give ``/_bulk``."""
    return "/" + (path or "").lstrip("/")


def decode_body(raw: bytes, encoding: Optional[str] = None) -> Any:
    """JSON-decode a buffered body; empty -> None, non-JSON -> text."""
    if not raw:
        return None
    text = raw.decode(encoding or "utf-8", errors="replace")
    try:
        return json.loads(text)
    except ValueError:
        logger.warning("Response body is not JSON, returning raw text")
        return text


class SignedHttpClient:
    """
    Sends signed requests to one Elasticsearch domain.

    Args:
        config: Immutable connection settings (host, region, credentials, timeout)
        session: Object exposing ``request()`` like requests.Session. Defaults
            to the ``requests`` module itself, so no connection is kept
            between calls.
    """

    def __init__(self, config: ElasticsearchConfig, session=None):
        self._config = config
        self._session = session or requests

    @property
    def config(self) -> ElasticsearchConfig:
        return self._config

    def build_request(self, method: str, path: str, body: Union[str, bytes, None] = None) -> AWSRequest:
        data = body.encode("utf-8") if isinstance(body, str) else body
        return AWSRequest(
            method=method.upper(),
            url=self._config.base_url + join_path(path),
            data=data,
            headers={
                "Content-Type": "application/json",
                "Host": self._config.host,
            },
        )

    def sign(self, request: AWSRequest) -> AWSRequest:
        """Add SigV4 authorization headers in place."""
        SigV4Auth(self._config.credentials, CONSTANTS.SIGNING_SERVICE, self._config.region).add_auth(request)
        return request

    def send(self, method: str, path: str, body: Union[str, bytes, None] = None) -> HttpResponse:
        """
        Sign and send one request, returning the buffered response.

        Args:
            method: HTTP method, e.g. "POST"
            path: Path relative to the domain root, e.g. "/_bulk"
            body: Request body; text is sent as UTF-8

        Returns:
            HttpResponse with the JSON-decoded body (None when empty)

        Raises:
            TransportError: On signing, connection, DNS or timeout failures
        """
        try:
            prepared = self.sign(self.build_request(method, path, body)).prepare()
            logger.debug(f"Sending signed {prepared.method} {prepared.url}")
            response = self._session.request(
                prepared.method,
                prepared.url,
                data=prepared.body,
                headers={k: v for k, v in prepared.headers.items()},
                stream=True,
                timeout=self._config.timeout,
            )
        except (requests.RequestException, BotoCoreError) as e:
            raise TransportError(method.upper(), join_path(path), e) from e

        try:
            buffer = bytearray()
            for chunk in response.iter_content(chunk_size=CONSTANTS.RESPONSE_CHUNK_SIZE):
                if chunk:
                    buffer.extend(chunk)
        except requests.RequestException as e:
            raise TransportError(method.upper(), join_path(path), e) from e
        finally:
            response.close()

        logger.debug(f"Response {response.status_code} {response.reason} ({len(buffer)} bytes)")
        return HttpResponse(
            status_code=response.status_code,
            status_message=response.reason,
            headers={k.lower(): v for k, v in response.headers.items()},
            body=decode_body(bytes(buffer), response.encoding),
        )

    def bulk(self, payload: Union[str, bytes]) -> HttpResponse:
        """POST a newline-delimited payload to the bulk API."""
        return self.send("POST", CONSTANTS.BULK_PATH, payload)
