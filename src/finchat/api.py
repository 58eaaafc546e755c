"""FastAPI backend for the finance chat service.

Inbound chat messages arrive either as plain JSON (``/v1/messages``) or as
WhatsApp webhook notifications; both go through the command dispatcher and
the reply is handed to the delivery provider.
"""

import json
import logging
import os
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import duckdb
from fastapi import FastAPI, Header, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from finchat import __version__
from finchat.commands.dispatcher import CommandDispatcher
from finchat.commands.pending_actions import (
    InMemoryPendingActionStore,
    PendingActionStore,
    create_pending_action_store,
)
from finchat.config import get_settings
from finchat.ledger import DuckDBLedger, init_db
from finchat.metrics import get_metrics_collector, is_metrics_enabled
from finchat.models import (
    DailySummaryResponse,
    DependencyStatus,
    MessageRequest,
    MessageResponse,
    NotificationItem,
    NotificationsListResponse,
    StatusResponse,
    WebhookResult,
)
from finchat.notifications import (
    MessageDeliveryProvider,
    NotificationHistory,
    NotificationService,
    get_delivery_provider,
)
from finchat.redis_client import get_redis_client
from finchat.scheduler import Scheduler
from finchat.webhooks import extract_text_messages, verify_signature

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Service singletons (initialized lazily)
_db_conn: duckdb.DuckDBPyConnection | None = None
_ledger: DuckDBLedger | None = None
_pending_store: PendingActionStore | None = None
_history: NotificationHistory | None = None
_delivery: MessageDeliveryProvider | None = None
_dispatcher: CommandDispatcher | None = None


def get_db() -> duckdb.DuckDBPyConnection:
    """Get or initialize database connection.

    Uses FINCHAT_DB_PATH environment variable or defaults to data/finchat.duckdb.
    Tests set FINCHAT_DB_PATH=:memory: in conftest.py for isolation.
    """
    global _db_conn
    if _db_conn is None:
        _db_conn = init_db()
    return _db_conn


def get_ledger() -> DuckDBLedger:
    global _ledger
    if _ledger is None:
        _ledger = DuckDBLedger(get_db())
    return _ledger


def get_pending_store() -> PendingActionStore:
    global _pending_store
    if _pending_store is None:
        settings = get_settings()
        _pending_store = create_pending_action_store(
            get_redis_client(), ttl_seconds=settings.confirmation.ttl_seconds
        )
    return _pending_store


def get_history() -> NotificationHistory:
    global _history
    if _history is None:
        _history = NotificationHistory(max_per_key=get_settings().notifications.max_per_key)
    return _history


def get_delivery() -> MessageDeliveryProvider:
    global _delivery
    if _delivery is None:
        _delivery = get_delivery_provider(get_settings().notifications)
    return _delivery


def get_dispatcher() -> CommandDispatcher:
    """Get or initialize the command dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = CommandDispatcher(
            get_ledger(),
            store=get_pending_store(),
            settings=get_settings(),
            history=get_history(),
            metrics=get_metrics_collector() if is_metrics_enabled() else None,
        )
    return _dispatcher


def get_notification_service() -> NotificationService:
    return NotificationService(
        get_ledger(),
        get_delivery(),
        get_history(),
        retention_days=get_settings().notifications.retention_days,
    )


def build_scheduler() -> Scheduler:
    """Maintenance jobs run for the lifetime of the app."""
    settings = get_settings()
    scheduler = Scheduler()
    scheduler.add(
        "notification-cleanup",
        get_notification_service().cleanup,
        settings.notifications.cleanup_interval_seconds,
    )

    store = get_pending_store()
    if isinstance(store, InMemoryPendingActionStore):
        ttl = settings.confirmation.ttl_seconds
        scheduler.add(
            "pending-confirmation-purge",
            lambda: store.purge_expired(datetime.now(), ttl),
            ttl,
        )
    return scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = build_scheduler()
    scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()


app = FastAPI(
    title="finchat API",
    version=__version__,
    description="Finance tracking through chat commands",
    lifespan=lifespan,
)


async def _handle_message(sender: str, text: str) -> MessageResponse:
    reply = await get_dispatcher().process_message(sender, text)
    result = await get_delivery().send_text(sender, reply)
    return MessageResponse(reply=reply, delivered=bool(result.get("ok")))


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/v1/status", response_model=StatusResponse)
def get_status():
    """Get service status with dependency readiness.

    Does not expose sensitive configuration values.
    """
    dependencies = []

    try:
        get_db().cursor().execute("SELECT 1").fetchone()
        dependencies.append(
            DependencyStatus(name="duckdb", status="ok", message="Database connection healthy")
        )
    except Exception as e:
        logger.warning("DuckDB health check failed: %s", e)
        dependencies.append(
            DependencyStatus(
                name="duckdb", status="unavailable", message="Database connection failed"
            )
        )

    if isinstance(get_pending_store(), InMemoryPendingActionStore):
        dependencies.append(
            DependencyStatus(
                name="redis", status="degraded", message="Using in-memory confirmation store"
            )
        )
    else:
        dependencies.append(DependencyStatus(name="redis", status="ok"))

    overall_status = "ok"
    if any(dep.status == "unavailable" for dep in dependencies):
        overall_status = "degraded"

    return StatusResponse(
        status=overall_status,
        version=app.version,
        timestamp=datetime.now(UTC),
        dependencies=dependencies,
    )


@app.post("/v1/messages", response_model=MessageResponse)
async def submit_message(request: MessageRequest) -> MessageResponse:
    """Process one chat message and deliver the reply to the sender."""
    return await _handle_message(request.sender, request.text)


@app.get("/v1/webhooks/whatsapp")
async def verify_webhook_subscription(
    mode: str = Query(..., alias="hub.mode"),
    verify_token: str = Query(..., alias="hub.verify_token"),
    challenge: str = Query(..., alias="hub.challenge"),
) -> PlainTextResponse:
    """Answer the subscription handshake of the WhatsApp Cloud API."""
    expected = os.environ.get("WHATSAPP_VERIFY_TOKEN")
    if mode != "subscribe" or not expected or verify_token != expected:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Verification failed")
    return PlainTextResponse(challenge)


@app.post("/v1/webhooks/whatsapp", response_model=WebhookResult)
async def whatsapp_webhook(
    request: Request,
    x_hub_signature_256: str | None = Header(default=None, alias="X-Hub-Signature-256"),
) -> WebhookResult:
    """Handle WhatsApp message notifications.

    Raises:
        401 Unauthorized if the signature is invalid
        400 Bad Request if the body is not JSON
    """
    body = await request.body()

    if not verify_signature(body, x_hub_signature_256, get_settings().app_secret):
        logger.error("Signature verification failed for WhatsApp webhook")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid signature")

    try:
        payload = json.loads(body)
    except ValueError as e:
        logger.error("Failed to parse webhook payload: %s", e)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON payload"
        ) from e

    if not isinstance(payload, dict):
        logger.error("Webhook payload is not a JSON object")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Payload must be a JSON object"
        )

    # Messages of one delivery are handled in order so confirmations follow their commands
    responses = []
    for message in extract_text_messages(payload):
        responses.append(await _handle_message(message.sender, message.text))

    return WebhookResult(processed=len(responses), replies=responses)


@app.get("/v1/notifications/{key}", response_model=NotificationsListResponse)
async def list_notifications(key: str) -> NotificationsListResponse:
    """List the stored notifications of a conversation."""
    items = [NotificationItem(**n.to_dict()) for n in get_history().get(key)]
    return NotificationsListResponse(
        notifications=items, unread=sum(1 for item in items if not item.read)
    )


@app.post("/v1/notifications/{key}/{notification_id}/read", status_code=204)
async def mark_notification_read(key: str, notification_id: str) -> Response:
    """Mark a notification as read."""
    if not get_history().mark_as_read(key, notification_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    return Response(status_code=204)


@app.post("/v1/notifications/{key}/daily-summary", response_model=DailySummaryResponse)
async def send_daily_summary(key: str) -> DailySummaryResponse:
    """Send today's summary to a conversation."""
    result = await get_notification_service().send_daily_summary(key)
    return DailySummaryResponse(text=result["text"], delivered=bool(result["delivery"].get("ok")))


@app.get("/v1/metrics")
def get_metrics():
    """Return in-process metrics when FINCHAT_ENABLE_METRICS is set."""
    if not is_metrics_enabled():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Metrics disabled")
    return get_metrics_collector().get_snapshot()


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTPExceptions and return the error schema."""
    if isinstance(exc.detail, dict):
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": "http_error", "message": str(exc.detail)},
    )
