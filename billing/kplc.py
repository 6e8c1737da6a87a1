"""KPLC ingress module - fetches the account bill via the self-service REST API"""
import logging
from decimal import Decimal

import httpx

from billing.base import Bill, ProviderError, decode_bill_response, decode_token_response
from errors import AuthError, BillFetchError, ResponseDecodeError
from settings import KPLCSettings

logger = logging.getLogger(__name__)

PROVIDER_NAME = "KPLC"
CURRENCY = "KES"


class KPLCBillQuery:
    """
    Kenya Power bill query client.

    Performs the OAuth2 client-credentials token exchange, then fetches
    the bill with the bearer token. A fresh token is acquired on every
    call; nothing is cached between calls.
    """

    def __init__(self, settings: KPLCSettings, http_client: httpx.AsyncClient):
        """
        Initialize the KPLC bill query.

        Args:
            settings: KPLC endpoint, credential and account settings
            http_client: Shared client from http_client.get_http_client()
        """
        self.settings = settings
        self.http_client = http_client

    async def get_authorization_token(self, basic_auth: str) -> str:
        """
        Step 1: OAuth2 token exchange.

        Args:
            basic_auth: Authorization header value ("Basic <base64>")

        Returns:
            The bearer access token.

        Raises:
            AuthError: If the provider rejects the credentials or the
                request cannot be sent.
            ResponseDecodeError: If the body matches no known shape.
        """
        params = {
            "grant_type": self.settings.token_grant_type,
            "scope": self.settings.token_scope
        }

        logger.debug(f"KPLC: Requesting access token from {self.settings.token_url}")
        try:
            response = await self.http_client.post(
                self.settings.token_url,
                params=params,
                headers={"Authorization": basic_auth}
            )
        except httpx.HTTPError as e:
            raise AuthError(f"failed to get access token: {e}") from e

        # Error bodies may arrive with 2xx and success bodies with 4xx,
        # so the body shape decides, not the status code.
        result = decode_token_response(_json_body(response, "token"))
        if isinstance(result, ProviderError):
            raise AuthError(
                f"failed to get access token: code: {result.code} message: {result.message}",
                code=result.code,
                description=result.message
            )

        logger.debug(f"KPLC: Access token received (HTTP {response.status_code})")
        return result

    async def get_bill(self, account_reference: str | None = None) -> Bill:
        """
        Step 2: Fetch the bill with a fresh bearer token.

        Args:
            account_reference: Account to query (default: settings.account_number)

        Raises:
            AuthError: Propagated unchanged from the token exchange.
            BillFetchError: If the provider rejects the bill request or it
                cannot be sent.
            ResponseDecodeError: If the body matches no known shape.
        """
        account_reference = account_reference or self.settings.account_number
        token = await self.get_authorization_token(self.settings.basic_auth)

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}"
        }

        logger.info(f"KPLC: Fetching bill for account {account_reference}")
        try:
            response = await self.http_client.get(
                self.settings.bill_url,
                params={"accountReference": account_reference},
                headers=headers
            )
        except httpx.HTTPError as e:
            raise BillFetchError(f"failed to get bill: {e}") from e

        result = decode_bill_response(
            _json_body(response, "bill"),
            provider=PROVIDER_NAME,
            currency=CURRENCY
        )
        if isinstance(result, ProviderError):
            logger.debug(
                f"KPLC: Bill request rejected (HTTP {response.status_code}, "
                f"code {result.code}, sequence {result.error_sequence})"
            )
            raise BillFetchError(f"failed to get bill: {result.message}", provider_error=result)

        logger.info(
            f"KPLC: Bill for account {result.account_reference} has balance "
            f"{result.currency} {result.balance}"
        )
        return result


def _json_body(response: httpx.Response, what: str):
    """Parse a response body as JSON, keeping money values exact."""
    try:
        return response.json(parse_float=Decimal)
    except ValueError as e:
        raise ResponseDecodeError(
            f"{what} response (HTTP {response.status_code}) is not valid JSON: {e}"
        ) from e
