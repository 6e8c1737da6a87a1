"""Base definitions for bills - data contracts and response shape decoders"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation

from errors import ResponseDecodeError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def decode_decimal(value) -> Decimal:
    """
    Convert a JSON money value into an exact Decimal.

    Bodies are parsed with parse_float=Decimal, so floats arrive here
    already as Decimal. Integers and numeric strings are accepted too.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"not a decimal amount: {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"not a decimal amount: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"not a finite decimal amount: {value!r}")
    return amount


def decode_epoch_millis(value) -> datetime:
    """Convert a millisecond Unix timestamp into a UTC datetime."""
    if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
        raise ValueError(f"not an epoch timestamp: {value!r}")
    try:
        return EPOCH + timedelta(milliseconds=int(value))
    except (OverflowError, ValueError) as e:
        raise ValueError(f"epoch timestamp out of range: {value!r}") from e


@dataclass(frozen=True)
class MeterReading:
    reading_date: datetime
    reading_value: int

    @classmethod
    def from_dict(cls, data: dict) -> "MeterReading":
        return cls(
            reading_date=decode_epoch_millis(data["readingDate"]),
            reading_value=int(data["readingValue"])
        )


@dataclass(frozen=True)
class Meter:
    serial_number: str
    readings: tuple[MeterReading, ...] = ()

    @classmethod
    def from_dict(cls, data: dict) -> "Meter":
        return cls(
            serial_number=str(data["serialNum"]),
            readings=tuple(
                MeterReading.from_dict(r) for r in data.get("latestUsageList") or []
            )
        )


@dataclass(frozen=True)
class BillingPeriod:
    """
    One billed cycle of the account.

    Attributes:
        due_date: When the bill must be paid (UTC).
        bill_amount: Amount billed for the period.
        pending_amount: Amount of this bill still unpaid.
        billing_period: Provider label, e.g. "10 - October 2022".
        from_date: Start of the period (UTC).
        to_date: End of the period (UTC).
        bill_number: Provider bill number.
    """
    due_date: datetime
    bill_amount: Decimal
    pending_amount: Decimal
    billing_period: str
    from_date: datetime
    to_date: datetime
    bill_number: str

    @classmethod
    def from_dict(cls, data: dict) -> "BillingPeriod":
        return cls(
            due_date=decode_epoch_millis(data["dueDate"]),
            bill_amount=decode_decimal(data["billAmount"]),
            pending_amount=decode_decimal(data["billPendAmount"]),
            billing_period=str(data["billingPeriod"]),
            from_date=decode_epoch_millis(data["fromDate"]),
            to_date=decode_epoch_millis(data["toDate"]),
            bill_number=str(data["billNumber"])
        )


@dataclass(frozen=True)
class Bill:
    """
    Uniform bill structure handed to every notification channel.

    Attributes:
        account_reference: Provider account number the bill belongs to.
        balance: Account balance. Negative = money owed.
        meters: Meters on the account with their latest readings.
        billing_periods: Billed cycles, most recent first.
        full_name: Account holder name, optional.
        provider: Short provider name used in alert titles.
        currency: ISO currency code of the amounts, optional.
    """
    account_reference: str
    balance: Decimal
    meters: tuple[Meter, ...] = ()
    billing_periods: tuple[BillingPeriod, ...] = ()
    full_name: str | None = None
    provider: str = ""
    currency: str | None = None

    @property
    def current_period(self) -> BillingPeriod | None:
        """The most recent billing period, or None when the list is empty."""
        return self.billing_periods[0] if self.billing_periods else None

    @property
    def is_owing(self) -> bool:
        return self.balance < 0


@dataclass(frozen=True)
class ProviderError:
    """
    Structured error body returned by a provider instead of a result.

    This is a response variant, not an exception.
    """
    code: str
    message: str
    http_status: int | None = None
    help_link: str | None = None
    developer_message: str | None = None
    error_sequence: str | None = None


def decode_token_response(payload) -> str | ProviderError:
    """
    Classify a token endpoint body.

    Returns the access token for `{access_token}` bodies, a ProviderError
    for `{error, error_description}` bodies. Anything else raises
    ResponseDecodeError.
    """
    if isinstance(payload, dict):
        token = payload.get("access_token")
        if isinstance(token, str) and "error" not in payload:
            return token

        if "error" in payload:
            return ProviderError(
                code=str(payload["error"]),
                message=str(payload.get("error_description", ""))
            )

    raise ResponseDecodeError(f"unexpected token response shape: {_describe(payload)}")


def decode_bill_response(payload, provider: str = "", currency: str | None = None) -> Bill | ProviderError:
    """
    Classify a bill endpoint body.

    The success shape `{"data": {...}}` is tried first. When it is absent or
    malformed the error shape `{httpStatus, code, msgUser, ...}` is tried.
    Anything else raises ResponseDecodeError.
    """
    if not isinstance(payload, dict):
        raise ResponseDecodeError(f"unexpected bill response shape: {_describe(payload)}")

    success_failure = None
    data = payload.get("data")
    if isinstance(data, dict):
        try:
            return Bill(
                account_reference=str(data["accountReference"]),
                balance=decode_decimal(data["balance"]),
                meters=tuple(Meter.from_dict(m) for m in data.get("meterList") or []),
                billing_periods=tuple(
                    BillingPeriod.from_dict(b) for b in data.get("colBills") or []
                ),
                full_name=data.get("fullName"),
                provider=provider,
                currency=currency
            )
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            success_failure = e

    if "msgUser" in payload:
        http_status = payload.get("httpStatus")
        return ProviderError(
            code=str(payload.get("code", "")),
            message=str(payload["msgUser"]),
            http_status=http_status if isinstance(http_status, int) else None,
            help_link=payload.get("helpLink"),
            developer_message=payload.get("msgDeveloper"),
            error_sequence=payload.get("errorSequence")
        )

    if success_failure is not None:
        raise ResponseDecodeError(f"malformed bill response: {success_failure}") from success_failure
    raise ResponseDecodeError(f"unexpected bill response shape: {_describe(payload)}")


def _describe(payload) -> str:
    if isinstance(payload, dict):
        return f"object with keys {sorted(payload)}"
    return type(payload).__name__
