import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from pydantic import ValidationError
from starlette.requests import ClientDisconnect

from pbom.api import deps
from pbom.core.config import settings
from pbom.core.constants import (
    WEBHOOK_ACTION_COMPLETED,
    WEBHOOK_EVENT_WORKFLOW_RUN,
    WEBHOOK_HEADER_EVENT,
    WEBHOOK_HEADER_SIGNATURE,
)
from pbom.core.metrics import webhook_deliveries_total
from pbom.core.security import SignatureError, verify_signature
from pbom.core.stats import EventStats
from pbom.core.worker import EnrichmentDispatcher
from pbom.models.webhook import WorkflowRunEvent

logger = logging.getLogger(__name__)

router = APIRouter()


async def read_body(request: Request, limit: int) -> bytes:
    """
    Read the raw request body, refusing anything larger than ``limit`` bytes.

    Raises:
        HTTPException: 400 if the body is too large or the client went away
    """
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > limit:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="request body too large")

    body = bytearray()
    try:
        async for chunk in request.stream():
            body.extend(chunk)
            if len(body) > limit:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="request body too large")
    except ClientDisconnect:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="failed to read body")
    return bytes(body)


def _filtered(reason: str) -> Response:
    logger.debug(reason)
    webhook_deliveries_total.labels(outcome="filtered").inc()
    return Response(status_code=status.HTTP_200_OK)


@router.post("/webhook", summary="GitHub Webhook Intake", status_code=status.HTTP_202_ACCEPTED)
async def receive_webhook(
    request: Request,
    signature: Optional[str] = Header(None, alias=WEBHOOK_HEADER_SIGNATURE),
    event_type: Optional[str] = Header(None, alias=WEBHOOK_HEADER_EVENT),
    secret: str = Depends(deps.get_webhook_secret),
    max_body_bytes: int = Depends(deps.get_max_body_bytes),
    dispatcher: EnrichmentDispatcher = Depends(deps.get_dispatcher),
    stats: EventStats = Depends(deps.get_event_stats),
):
    """
    Receive a GitHub webhook delivery.

    Only signed ``workflow_run`` events with action ``completed`` start an
    enrichment pipeline (202); every other valid delivery is acknowledged
    with 200 and dropped. Enrichment runs in the background after the
    response has been sent.
    """
    try:
        body = await read_body(request, max_body_bytes)
    except HTTPException as e:
        logger.error(f"Failed to read webhook body: {e.detail}")
        webhook_deliveries_total.labels(outcome="bad_request").inc()
        raise

    try:
        verify_signature(body, signature or "", secret)
    except SignatureError as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        webhook_deliveries_total.labels(outcome="unauthorized").inc()
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid signature")

    if event_type != WEBHOOK_EVENT_WORKFLOW_RUN:
        return _filtered(f"Ignoring non-workflow_run event: {event_type}")

    try:
        event = WorkflowRunEvent.model_validate_json(body)
    except ValidationError as e:
        logger.error(f"Failed to parse webhook payload: {e}")
        webhook_deliveries_total.labels(outcome="bad_request").inc()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="invalid payload")

    if event.action != WEBHOOK_ACTION_COMPLETED:
        return _filtered(f"Ignoring non-completed action: {event.action}")

    # Enriching the collector's own run would trigger another collector run
    if event.workflow_run.name == settings.COLLECTOR_WORKFLOW_NAME:
        return _filtered(f"{event.log_prefix()} skipping {settings.COLLECTOR_WORKFLOW_NAME} run")

    logger.info(
        f"{event.log_prefix()} processing workflow_run.completed "
        f"(workflow={event.workflow_run.name!r}, conclusion={event.workflow_run.conclusion})"
    )
    dispatcher.dispatch(event)
    stats.record_event()
    webhook_deliveries_total.labels(outcome="accepted").inc()
    return Response(status_code=status.HTTP_202_ACCEPTED)
