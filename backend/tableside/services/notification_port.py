"""Outbound staff-channel port used by the ordering workflows."""

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Optional

from tableside.core.exceptions import TablesideError

logger = logging.getLogger(__name__)


class NotificationPort(ABC):
    """Anything that can deliver a text or a captioned photo to the staff channel.

    Implementations report delivery with a boolean and never raise for
    channel errors.
    """

    @abstractmethod
    async def send_message(self, text: str) -> bool:
        ...

    @abstractmethod
    async def send_photo(
        self,
        photo: bytes,
        caption: str,
        filename: str = "payment.jpg",
        content_type: Optional[str] = None,
    ) -> bool:
        ...

    async def close(self) -> None:
        """Release any held connections."""
        return None


async def deliver(send: Awaitable[bool], event: str) -> bool:
    """Await a notification and report whether it was delivered.

    Failures are logged and never propagate to the workflow that triggered them.
    """
    try:
        delivered = await send
    except TablesideError as e:
        logger.warning(f"{event} notification failed: {e.message}")
        return False
    if not delivered:
        logger.warning(f"{event} notification was not delivered")
    return bool(delivered)
