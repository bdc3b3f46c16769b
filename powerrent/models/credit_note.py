from __future__ import annotations
from datetime import datetime
from typing import Literal

from pydantic import Field

from .common import LocalDateTime, Money, OptionalRef, Record, gen_id

CreditNoteStatus = Literal["activa", "cancelada"]

CREDIT_NOTE_STATUS_LABELS = {"activa": "Activa", "cancelada": "Cancelada"}


class CreditNoteInput(Record):
    client_id: OptionalRef = Field(None, alias="clienteId")
    payment_id: str = Field(alias="pagoId")
    amount: Money = Field(alias="monto")
    date: LocalDateTime = Field(default_factory=datetime.now, alias="fecha")
    reason: str = Field(alias="motivo")


class CreditNote(Record):
    id: str = Field(default_factory=gen_id)
    client_id: OptionalRef = Field(None, alias="clienteId")
    payment_id: str = Field(alias="pagoId")
    amount: Money = Field(alias="monto")
    date: LocalDateTime = Field(alias="fecha")
    reason: str = Field("", alias="motivo")
    status: CreditNoteStatus = Field("activa", alias="estado")
    applied: bool = Field(False, alias="aplicada")
