"""HTTP client for bill issuers: settings discovery, bill lookup and payment notification."""

from __future__ import annotations

import tomllib
from typing import Any, Mapping

import httpx
from loguru import logger

from lnbill_api.core.settings import Settings, settings as default_settings
from lnbill_api.domain.bill import Bill, BillIssuer, WalletAmount
from lnbill_api.domain.errors import (
    BillIssuerSettingsNotFound,
    BillNotFound,
    BillStatusUpdateFailed,
    InvalidBill,
    InvalidIssuerSettings,
    UnknownIssuerError,
)
from lnbill_api.domain.results import Err, Ok, Result
from lnbill_api.domain.status import BillStatus, WalletCurrency, parse_bill_status
from lnbill_api.observability.tracing import traced

SETTINGS_SUBDOMAIN = "blink"
SETTINGS_FILE_NAME = "blink.toml"


class _PayloadTooLarge(Exception):
    pass


def _parse_amount(value: Any) -> int:
    # Whole minor units only.
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    return 0


def parse_bill_payload(payload: Any) -> Result[Bill]:
    """Validate an issuer bill document and convert it into a :class:`Bill`."""

    if not isinstance(payload, Mapping):
        return Err(InvalidBill("Invalid data"))

    amount = _parse_amount(payload.get("amount"))
    currency = payload.get("currency")
    if amount <= 0 or currency not in {member.value for member in WalletCurrency}:
        return Err(InvalidBill("Invalid amount"))

    status = parse_bill_status(payload.get("status"))
    if isinstance(status, Err):
        return Err(InvalidBill("Invalid status"))

    period = payload.get("period")
    if not period:
        return Err(InvalidBill("Invalid period"))

    return Ok(
        Bill(
            reference=str(payload.get("reference") or ""),
            period=str(period),
            description=str(payload.get("description") or ""),
            amount=WalletAmount(currency=WalletCurrency(currency), amount=amount),
            status=status.value,
        )
    )


class BillService:
    """Talks to the issuer's bill server discovered from ``blink.<domain>``."""

    def __init__(
        self,
        *,
        allow_http: bool = False,
        timeout_seconds: float = 30.0,
        max_settings_bytes: int = 100 * 1024,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._allow_http = allow_http
        self._timeout_seconds = timeout_seconds
        self._max_settings_bytes = max_settings_bytes
        self._transport = transport

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "BillService":
        config = config or default_settings
        return cls(
            allow_http=config.allow_http,
            timeout_seconds=config.issuer_timeout_seconds,
            max_settings_bytes=config.issuer_settings_max_bytes,
        )

    def _client(self, timeout_seconds: float | None = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout_seconds or self._timeout_seconds,
            transport=self._transport,
        )

    @traced("services.bill")
    async def resolve_settings(
        self,
        domain: str,
        *,
        allow_http: bool | None = None,
        timeout_seconds: float | None = None,
    ) -> Result[BillIssuer]:
        use_http = self._allow_http if allow_http is None else allow_http
        protocol = "http" if use_http else "https"
        base_url = f"{protocol}://{SETTINGS_SUBDOMAIN}.{domain}"
        url = f"{base_url}/.well-known/{SETTINGS_FILE_NAME}"

        try:
            async with self._client(timeout_seconds) as client:
                async with client.stream("GET", url) as response:
                    if response.status_code == 404:
                        return Err(BillIssuerSettingsNotFound(f"{SETTINGS_FILE_NAME} not found for {domain}"))
                    if response.status_code >= 400:
                        return Err(InvalidIssuerSettings(f"Settings request failed with {response.status_code}"))
                    body = await self._read_capped(response)
        except _PayloadTooLarge:
            return Err(
                InvalidIssuerSettings(
                    f"{SETTINGS_FILE_NAME} exceeds max allowed size of {self._max_settings_bytes}"
                )
            )
        except httpx.HTTPError as exc:
            logger.info(
                "Unknown bill service error",
                domain=domain,
                allow_http=use_http,
                base_url=base_url,
                error=str(exc),
            )
            return Err(UnknownIssuerError(str(exc) or type(exc).__name__))

        if not body.strip():
            return Err(InvalidIssuerSettings("Empty settings document"))
        try:
            document = tomllib.loads(body.decode("utf-8"))
        except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
            return Err(InvalidIssuerSettings(f"Malformed settings document: {exc}"))

        name = document.get("ORG_NAME")
        username = document.get("ORG_LN_ADDRESS")
        if not name or not username:
            return Err(InvalidIssuerSettings("Missing required settings"))

        return Ok(
            BillIssuer(
                domain=domain,
                name=str(name),
                username=str(username),
                bill_server_url=str(document.get("BILL_SERVER_URL") or f"{base_url}/api"),
                pubkey=document.get("AUTH_PUBLIC_KEY"),
                logo_url=document.get("ORG_LOGO_URL"),
            )
        )

    @traced("services.bill")
    async def lookup_by_ref(self, domain: str, reference: str) -> Result[Bill]:
        issuer = await self.resolve_settings(domain)
        if isinstance(issuer, Err):
            return issuer

        url = f"{issuer.value.bill_server_url.rstrip('/')}/bills/{reference}"
        return await self._bill_request("GET", url, domain=domain, reference=reference)

    @traced("services.bill")
    async def notify_payment_received(self, domain: str, reference: str) -> Result[Bill]:
        issuer = await self.resolve_settings(domain)
        if isinstance(issuer, Err):
            return issuer

        url = f"{issuer.value.bill_server_url.rstrip('/')}/bills/{reference}"
        bill = await self._bill_request(
            "PUT",
            url,
            domain=domain,
            reference=reference,
            json={"status": BillStatus.PAID.value},
        )
        if isinstance(bill, Err):
            return bill
        if bill.value.status is not BillStatus.PAID:
            return Err(BillStatusUpdateFailed("Status was not updated"))
        return bill

    async def _bill_request(
        self,
        method: str,
        url: str,
        *,
        domain: str,
        reference: str,
        json: Mapping[str, Any] | None = None,
    ) -> Result[Bill]:
        try:
            async with self._client() as client:
                response = await client.request(method, url, json=json)
        except httpx.HTTPError as exc:
            logger.info("Unknown bill service error", domain=domain, reference=reference, error=str(exc))
            return Err(UnknownIssuerError(str(exc) or type(exc).__name__))

        if response.status_code == 404 or not response.content:
            return Err(BillNotFound("Bill not found"))
        if response.status_code >= 400:
            return Err(UnknownIssuerError("Invalid data"))

        try:
            payload = response.json()
        except ValueError:
            return Err(InvalidBill("Invalid data"))

        bill = parse_bill_payload(payload)
        if isinstance(bill, Err):
            return bill
        if bill.value.reference != reference:
            return Err(InvalidBill("Invalid reference"))
        return bill

    async def _read_capped(self, response: httpx.Response) -> bytes:
        chunks: list[bytes] = []
        size = 0
        async for chunk in response.aiter_bytes():
            size += len(chunk)
            if size > self._max_settings_bytes:
                raise _PayloadTooLarge()
            chunks.append(chunk)
        return b"".join(chunks)


__all__ = ["SETTINGS_FILE_NAME", "SETTINGS_SUBDOMAIN", "BillService", "parse_bill_payload"]
