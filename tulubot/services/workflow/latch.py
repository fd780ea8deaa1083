"""One-shot reply latch.

Every inbound event gets exactly one latch. Whichever branch replies first
wins; any later attempt is dropped before it reaches the transport.
"""

from __future__ import annotations

from typing import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)

SendReply = Callable[[str, str], Awaitable[None]]


class ReplyLatch:
    def __init__(self, send_reply: SendReply, chat_id: str) -> None:
        self._send_reply = send_reply
        self._chat_id = chat_id
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    async def send(self, text: str) -> bool:
        """Deliver *text* unless a reply already went out. Returns True if sent."""
        if self._fired:
            logger.warning("reply_suppressed", chat_id=self._chat_id, text_len=len(text))
            return False
        # Latch before awaiting so a concurrent branch cannot slip in.
        self._fired = True
        await self._send_reply(self._chat_id, text)
        return True
