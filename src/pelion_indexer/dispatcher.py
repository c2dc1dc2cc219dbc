"""
Callback dispatcher.

Classifies a decoded webhook body, builds the bulk payload for it and sends
it to Elasticsearch as a single request. One body produces at most one
outbound call.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from pelion_indexer import constants as CONSTANTS
from pelion_indexer.bulk import BulkRecordBuilder
from pelion_indexer.events import ExpirationBatch, UnknownCallback, decode_callback
from pelion_indexer.exceptions import TransportError
from pelion_indexer.logger import get_logger, print_stack_trace
from pelion_indexer.signed_http import SignedHttpClient

logger = get_logger(__name__)


@dataclass
class DispatchResult:
    """
    Outcome of one dispatched callback.

    Attributes:
        kind: Branch taken ("notifications", "registrations", "reg-updates",
            "registrations-expired" or "unknown")
        records: Number of bulk records sent
        status_code: HTTP status from the engine, None when nothing was sent
        item_errors: Bulk items the engine reported as failed
    """
    kind: str
    records: int = 0
    status_code: Optional[int] = None
    item_errors: int = 0

    @property
    def sent(self) -> bool:
        return self.status_code is not None


def count_item_errors(body: Any) -> int:
    """Count failed items in a bulk API response body."""
    if not isinstance(body, dict) or not body.get("errors"):
        return 0
    failed = 0
    for entry in body.get("items") or []:
        if not isinstance(entry, dict):
            continue
        for outcome in entry.values():
            if isinstance(outcome, dict) and outcome.get("error"):
                failed += 1
    return failed


class EventDispatcher:
    """
    Routes a callback body to the matching bulk transform and sends it.

    Args:
        client: Signed client for the Elasticsearch domain
        builder: Record builder; a default wall-clock builder when omitted
    """

    def __init__(self, client: SignedHttpClient, builder: Optional[BulkRecordBuilder] = None):
        self._client = client
        self._builder = builder or BulkRecordBuilder()

    def dispatch(self, body: Any) -> DispatchResult:
        """
        Index one callback body.

        Unknown bodies and empty batches are acknowledged without contacting
        the engine. Engine-side failures (non-2xx status, per-item bulk
        errors) are logged but still reported as success.

        Raises:
            TransportError: If the bulk request could not be signed or sent
        """
        batch = decode_callback(body)

        if isinstance(batch, UnknownCallback):
            logger.info(f"Unknown callback type (keys: {batch.keys}), acknowledging without indexing")
            return DispatchResult(kind=batch.kind)

        if isinstance(batch, ExpirationBatch):
            logger.debug(f"registrations-expired: {[item.endpoint for item in batch.items]}")

        request = self._builder.build(batch)
        if not len(request):
            logger.info(f"Empty '{batch.kind}' batch, nothing to index")
            return DispatchResult(kind=batch.kind)

        logger.info(f"Indexing {len(batch.items)} '{batch.kind}' item(s) as {len(request)} record(s)")
        try:
            response = self._client.bulk(request.to_ndjson())
        except TransportError as e:
            logger.error(f"Bulk request for '{batch.kind}' failed: {e}")
            print_stack_trace()
            raise

        item_errors = count_item_errors(response.body)
        if not response.ok:
            logger.warning(
                f"Bulk request for '{batch.kind}' returned {response.status_code} "
                f"{response.status_message}: {response.body}"
            )
        elif item_errors:
            logger.warning(f"Bulk request for '{batch.kind}' had {item_errors} failed item(s)")

        return DispatchResult(
            kind=batch.kind,
            records=len(request),
            status_code=response.status_code,
            item_errors=item_errors,
        )

    def dispatch_with_callback(self, body: Any, done: Callable[[Optional[Exception], Any], Any]) -> Any:
        """
        Completion-callback form of dispatch.

        Calls ``done(None, "success")`` on success or ``done(error, None)``
        on failure, and returns whatever ``done`` returns.
        """
        try:
            self.dispatch(body)
        except Exception as e:
            return done(e, None)
        return done(None, CONSTANTS.SUCCESS)
