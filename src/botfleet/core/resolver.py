"""Reply target resolution for inbound messages."""

from __future__ import annotations

from botfleet.core.types import DirectoryRef, MessageContext
from botfleet.errors import ResolutionError


def resolve_reply_target(ctx: MessageContext) -> DirectoryRef:
    """Pick where a reply to the given message should go.

    Group messages are answered in the group. A direct message sent by the
    account itself from another client is answered to its listener, any
    other direct message back to the talker.
    """

    if ctx.room is not None:
        return ctx.room
    if ctx.is_from_self:
        if ctx.listener is None:
            raise ResolutionError("Message target cannot be resolved")
        return ctx.listener
    return ctx.talker
