"""Pushover egress module - formats and pushes bill alerts via HTTP"""
import json
import logging

import httpx

from billing.base import Bill, BillingPeriod
from errors import ChannelSendError
from settings import PushoverSettings

logger = logging.getLogger(__name__)

DUE_DATE_FORMAT = "%d %B, %Y"


class Pushover:
    """
    Pushover push-notification channel.

    Sends one message per alert through the Pushover messages API.
    """

    name = "Pushover"

    def __init__(self, settings: PushoverSettings, http_client: httpx.AsyncClient):
        self.settings = settings
        self.http_client = http_client

    def is_enabled(self) -> bool:
        return self.settings.enabled

    async def send_alert(self, bill: Bill) -> None:
        """
        Formats the bill and posts it to Pushover.

        Args:
            bill: Bill with a negative balance and at least one billing period

        Raises:
            ChannelSendError: If the bill has no billing period, the request
                fails, or Pushover does not answer with status 1.
        """
        period = bill.current_period
        if period is None:
            raise ChannelSendError(
                f"failed sending alert to {self.name}: bill for account "
                f"{bill.account_reference} has no billing periods"
            )

        params = {
            "token": self.settings.token,
            "user": self.settings.user_key,
            "title": get_title(bill, period),
            "message": get_message(bill, period)
        }

        try:
            response = await self.http_client.post(self.settings.api_url, data=params)
        except httpx.HTTPError as e:
            raise ChannelSendError(f"failed sending alert to {self.name}: {e}") from e

        try:
            body = response.json()
        except ValueError as e:
            raise ChannelSendError(
                f"failed sending alert to {self.name}: invalid response "
                f"(HTTP {response.status_code}): {e}"
            ) from e

        if not isinstance(body, dict) or "status" not in body:
            raise ChannelSendError(
                f"failed sending alert to {self.name}: unexpected response "
                f"(HTTP {response.status_code}): {body!r}"
            )

        # Status 1 means the message was accepted
        if body["status"] != 1:
            errors = body.get("errors") or []
            raise ChannelSendError(f"failed sending alert to {self.name}: {json.dumps(errors)}")

        logger.debug(f"Pushover: Message accepted (request {body.get('request')})")


def get_title(bill: Bill, period: BillingPeriod) -> str:
    return f"{bill.provider} Bill (#{bill.account_reference}): {period.billing_period}"


def get_message(bill: Bill, period: BillingPeriod) -> str:
    # Plain notation, never exponent form
    amount = f"{bill.currency} {bill.balance:f}" if bill.currency else f"{bill.balance:f}"
    due_date = period.due_date.strftime(DUE_DATE_FORMAT)

    return f"Balance of {amount} is due on {due_date}!"
