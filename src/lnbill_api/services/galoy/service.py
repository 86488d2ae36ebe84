"""Galoy GraphQL client used to issue and poll Lightning invoices."""

from __future__ import annotations

from typing import Any, Mapping

import httpx
from loguru import logger

from lnbill_api.core.settings import Settings, settings as default_settings
from lnbill_api.domain.bill import WalletAmount
from lnbill_api.domain.errors import (
    InvalidInvoice,
    InvalidProviderStatus,
    InvalidUsername,
    InvoiceRequestRejected,
    ProviderError,
    UnknownProviderError,
)
from lnbill_api.domain.results import Err, Ok, Result
from lnbill_api.domain.status import InvoiceStatus, WalletCurrency, parse_invoice_status
from lnbill_api.observability.tracing import traced

from .queries import (
    CREATE_BTC_INVOICE_MUTATION,
    CREATE_USD_INVOICE_MUTATION,
    INVOICE_STATUS_QUERY,
    WALLET_QUERY,
)

_ACCOUNT_MISSING = "account does not exist"
_INVALID_PAYMENT_REQUEST = "invalid value for lnpaymentrequest"


class _GraphQLFailure(Exception):
    def __init__(self, messages: list[str]) -> None:
        super().__init__("; ".join(messages) or "GraphQL request failed")
        self.messages = messages


def _mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _error_messages(errors: Any) -> list[str]:
    if not isinstance(errors, list):
        return []
    return [str(item.get("message", "")) for item in errors if isinstance(item, Mapping)]


class GaloyService:
    """Thin GraphQL client; every method returns a ``Result``."""

    def __init__(
        self,
        *,
        endpoint: str,
        timeout_seconds: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "GaloyService":
        config = config or default_settings
        return cls(endpoint=config.galoy_endpoint, timeout_seconds=config.galoy_timeout_seconds)

    @traced("services.galoy")
    async def create_invoice(
        self,
        *,
        username: str,
        amount: WalletAmount,
        memo: str,
        description_hash: str | None = None,
    ) -> Result[str]:
        try:
            wallet_data = await self._execute(
                WALLET_QUERY,
                {"username": username, "walletCurrency": amount.currency.value},
            )
        except _GraphQLFailure as exc:
            if any(_ACCOUNT_MISSING in message.lower() for message in exc.messages):
                return Err(InvalidUsername(str(exc)))
            return Err(UnknownProviderError(str(exc)))
        except httpx.HTTPError as exc:
            return Err(self._transport_error(exc, username=username))

        wallet = _mapping(wallet_data.get("wallet"))
        if not wallet.get("id"):
            return Err(InvalidUsername(f"No wallet found for {username}"))

        input_payload: dict[str, Any] = {
            "recipientWalletId": wallet["id"],
            "amount": amount.amount,
            "memo": memo,
        }
        if description_hash:
            input_payload["descriptionHash"] = description_hash

        mutation = (
            CREATE_USD_INVOICE_MUTATION
            if amount.currency is WalletCurrency.USD
            else CREATE_BTC_INVOICE_MUTATION
        )
        try:
            invoice_data = await self._execute(mutation, {"input": input_payload})
        except _GraphQLFailure as exc:
            return Err(InvoiceRequestRejected(str(exc)))
        except httpx.HTTPError as exc:
            return Err(self._transport_error(exc, username=username))

        ln_invoice = _mapping(invoice_data.get("lnInvoice"))
        messages = _error_messages(ln_invoice.get("errors"))
        if messages:
            return Err(InvoiceRequestRejected("; ".join(messages)))

        payment_request = _mapping(ln_invoice.get("invoice")).get("paymentRequest")
        if not isinstance(payment_request, str) or not payment_request:
            return Err(UnknownProviderError("Invoice response did not include a payment request"))
        return Ok(payment_request)

    @traced("services.galoy")
    async def check_invoice_status(self, invoice: str) -> Result[InvoiceStatus]:
        try:
            data = await self._execute(
                INVOICE_STATUS_QUERY,
                {"input": {"paymentRequest": invoice}},
            )
        except _GraphQLFailure as exc:
            if any(_INVALID_PAYMENT_REQUEST in message.lower() for message in exc.messages):
                return Err(InvalidInvoice(str(exc)))
            return Err(UnknownProviderError(str(exc)))
        except httpx.HTTPError as exc:
            return Err(self._transport_error(exc))

        ln_invoice = data.get("lnInvoice")
        if not isinstance(ln_invoice, Mapping):
            return Err(UnknownProviderError("Invoice status response did not include an invoice"))
        status = ln_invoice.get("status")
        parsed = parse_invoice_status(status)
        if isinstance(parsed, Err):
            return Err(InvalidProviderStatus(f"Unknown invoice status: {status!r}"))
        return parsed

    async def _execute(self, query: str, variables: Mapping[str, Any]) -> Mapping[str, Any]:
        async with httpx.AsyncClient(timeout=self._timeout_seconds, transport=self._transport) as client:
            response = await client.post(self._endpoint, json={"query": query, "variables": dict(variables)})

        # GraphQL servers report resolver errors with a 200 or a 400 body.
        try:
            body = response.json()
        except ValueError:
            response.raise_for_status()
            raise _GraphQLFailure([f"Non-JSON response ({response.status_code})"])

        if not isinstance(body, Mapping):
            raise _GraphQLFailure(["Malformed GraphQL response"])
        messages = _error_messages(body.get("errors"))
        if messages:
            raise _GraphQLFailure(messages)
        response.raise_for_status()
        return _mapping(body.get("data"))

    def _transport_error(self, exc: httpx.HTTPError, **context: Any) -> ProviderError:
        logger.warning(
            "Galoy request failed",
            endpoint=self._endpoint,
            error=str(exc) or type(exc).__name__,
            **context,
        )
        return UnknownProviderError(str(exc) or type(exc).__name__)


__all__ = ["GaloyService"]
