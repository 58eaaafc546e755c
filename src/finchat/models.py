"""Pydantic models for the HTTP API."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field


class MessageRequest(BaseModel):
    """An inbound chat message."""

    sender: str = Field(..., min_length=1, max_length=100, examples=["5511999998888"])
    text: str = Field(..., max_length=2000, examples=["gasto 25.50 mercado pix"])


class MessageResponse(BaseModel):
    """Reply produced for an inbound message."""

    reply: str
    delivered: bool


class WebhookResult(BaseModel):
    """Outcome of a webhook delivery."""

    processed: int
    replies: list[MessageResponse] = Field(default_factory=list)


class NotificationItem(BaseModel):
    """A stored notification."""

    id: str
    type: Literal["budget_alert", "transaction_created", "daily_summary"]
    title: str
    message: str
    timestamp: datetime
    read: bool


class NotificationsListResponse(BaseModel):
    """Notifications of one conversation, oldest first."""

    notifications: list[NotificationItem]
    unread: int


class DailySummaryResponse(BaseModel):
    """Daily summary sent to a conversation."""

    text: str
    delivered: bool


class DependencyStatus(BaseModel):
    """Dependency status."""

    name: str
    status: Literal["ok", "degraded", "unavailable"]
    message: str | None = None


class StatusResponse(BaseModel):
    """Service status response."""

    status: Literal["ok", "degraded", "unavailable"]
    version: str | None = None
    timestamp: datetime
    dependencies: list[DependencyStatus] = Field(default_factory=list)
