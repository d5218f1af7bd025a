"""Outbound messages and the transports that carry them to remote processes."""

from Wasit.transport.base import ProcessTransport
from Wasit.transport.gateway import GatewayTransport
from Wasit.transport.message import OutboundMessage, build_message, first_message_data

__all__ = [
    "GatewayTransport",
    "OutboundMessage",
    "ProcessTransport",
    "build_message",
    "first_message_data",
]
