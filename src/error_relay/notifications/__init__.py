"""Notification pipeline: sink contract, chat and log sinks, dispatcher.

Public API:
    NotificationSink: ABC every sink implements
    HttpSink: Base for sinks that POST JSON to one URL
    DiscordNotifier: Chat webhook sink
    ElkLogger: Log-ingestion sink and tracker logging collaborator
    NotificationDispatcher: Fans events out to sinks
    DispatchOptions: Dispatcher behavior
"""

from error_relay.notifications.base import HttpSink, NotificationSink
from error_relay.notifications.discord import (
    DiscordNotifier,
    build_embed,
    build_message,
    format_details,
    truncate,
    truncate_stack_trace,
)
from error_relay.notifications.dispatcher import DispatchOptions, NotificationDispatcher
from error_relay.notifications.elk import RESERVED_FIELDS, ElkLogger, build_log_record

__all__ = [
    "RESERVED_FIELDS",
    "DiscordNotifier",
    "DispatchOptions",
    "ElkLogger",
    "HttpSink",
    "NotificationDispatcher",
    "NotificationSink",
    "build_embed",
    "build_log_record",
    "build_message",
    "format_details",
    "truncate",
    "truncate_stack_trace",
]
