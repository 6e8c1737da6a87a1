"""Base definitions for notification channels - protocol and registry"""
from typing import Protocol

import httpx

from billing.base import Bill
from channels.pushover import Pushover
from settings import Settings


class Channel(Protocol):
    """
    Protocol for egress channels (Pushover, ...).

    Uses Protocol for duck typing - implementations don't need to inherit,
    just implement the members with matching signatures.
    """

    @property
    def name(self) -> str:
        """Human readable channel name used in logs and errors."""
        ...

    def is_enabled(self) -> bool:
        """Whether the channel is switched on in the settings."""
        ...

    async def send_alert(self, bill: Bill) -> None:
        """
        Deliver an alert for the given bill.

        Should raise ChannelSendError on any failure, including malformed
        responses from the channel's provider.
        """
        ...


def get_channels(settings: Settings, http_client: httpx.AsyncClient) -> list[Channel]:
    """Every known channel, enabled or not, in dispatch order."""
    return [Pushover(settings.pushover, http_client)]
