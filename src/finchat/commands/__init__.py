"""Chat command system for the finance service.

This module implements:
- Command parsing from message text
- Pending action confirmation storage
- Command dispatching and reply composition
"""

from .command_parser import Command, CommandKind, CommandParser, parse
from .dispatcher import CommandDispatcher
from .pending_actions import (
    InMemoryPendingActionStore,
    PendingAction,
    PendingActionStore,
    RedisPendingActionStore,
    create_pending_action_store,
)

__all__ = [
    "Command",
    "CommandDispatcher",
    "CommandKind",
    "CommandParser",
    "InMemoryPendingActionStore",
    "PendingAction",
    "PendingActionStore",
    "RedisPendingActionStore",
    "create_pending_action_store",
    "parse",
]
