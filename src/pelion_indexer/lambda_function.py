"""
Pelion webhook Lambda handler.

Receives device callbacks through an API Gateway proxy integration and
inserts them into Elasticsearch. Pelion delivers callbacks as PUT requests
with the JSON payload in the body.

Responses:
    200  body "success" (JSON string) once the callback has been handled
    400  body is the error message (unsupported method, bad body, transport error)
"""

import base64
import binascii
import json

from pelion_indexer import constants as CONSTANTS
from pelion_indexer.config import ElasticsearchConfig
from pelion_indexer.dispatcher import EventDispatcher
from pelion_indexer.exceptions import CallbackParseError, UnsupportedMethodError
from pelion_indexer.logger import get_logger
from pelion_indexer.signed_http import SignedHttpClient

logger = get_logger(__name__)

# Built once per container on first use, then reused
_dispatcher = None


def get_dispatcher() -> EventDispatcher:
    """Lazily build the dispatcher from the environment."""
    global _dispatcher
    if _dispatcher is None:
        config = ElasticsearchConfig.from_env()
        logger.info(f"Indexing into {config.host} ({config.region})")
        _dispatcher = EventDispatcher(SignedHttpClient(config))
    return _dispatcher


def build_response(err, res=None) -> dict:
    """Shape the API Gateway response for a handled callback."""
    return {
        "statusCode": 400 if err else 200,
        "body": str(err) if err else json.dumps(res),
        "headers": {
            "Content-Type": "application/json",
        },
    }


def parse_body(event: dict):
    """
    Decode the JSON body of an API Gateway proxy event.

    Raises:
        CallbackParseError: If the body is missing or not valid JSON
    """
    raw = event.get("body")
    if raw is None:
        raise CallbackParseError("Missing request body")
    try:
        if event.get("isBase64Encoded"):
            raw = base64.b64decode(raw).decode("utf-8")
        return json.loads(raw)
    except (binascii.Error, ValueError) as e:
        raise CallbackParseError(f"Invalid callback body: {e}") from e


def lambda_handler(event, context):
    logger.debug("Event: " + json.dumps(event, default=str))

    event = event or {}
    method = event.get("httpMethod")
    try:
        if method != CONSTANTS.WEBHOOK_METHOD:
            raise UnsupportedMethodError(method)
        body = parse_body(event)
        dispatcher = get_dispatcher()
    except Exception as e:
        logger.error(f"Rejecting callback: {e}")
        return build_response(e)

    return dispatcher.dispatch_with_callback(body, build_response)
