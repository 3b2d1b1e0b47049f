from __future__ import annotations

from sehra_realtime.infrastructure.ws.protocol import MessageRecord


class MessageResponse(MessageRecord):
    """Same shape as the ``receive_message`` payload, minus the sender name."""
