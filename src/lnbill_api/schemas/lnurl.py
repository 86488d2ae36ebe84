"""LNURL-pay (LUD-06) response documents."""

from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

from .bill import BillIssuerResponse


class PayRequestResponse(BaseModel):
    callback: str
    minSendable: int = Field(..., description="Millisatoshis")
    maxSendable: int = Field(..., description="Millisatoshis")
    metadata: str
    tag: Literal["payRequest"] = "payRequest"


class InvoiceResponse(BaseModel):
    pr: str
    routes: List[str] = Field(default_factory=list)


class VerifyResponse(BaseModel):
    settings: BillIssuerResponse


__all__ = ["InvoiceResponse", "PayRequestResponse", "VerifyResponse"]
