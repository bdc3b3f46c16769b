from __future__ import annotations
from typing import Optional

from pydantic import Field, field_serializer

from .accounting import Direction, PaymentMethod, PaymentStatus
from .common import LocalDateTime, Money, OptionalRef, Record, gen_id


class Movement(Record):
    id: str = Field(default_factory=gen_id)
    direction: Direction = Field(alias="tipo")
    category: str = Field(alias="categoria")
    description: str = Field(alias="concepto")
    amount: Money = Field(alias="monto")
    date: LocalDateTime = Field(alias="fecha")
    method: PaymentMethod = Field(alias="metodoPago")
    status: PaymentStatus = Field("completado", alias="estado")
    reference: str = Field("", alias="referencia")
    payment_id: OptionalRef = Field(None, alias="pagoId")
    credit_note_id: OptionalRef = Field(None, alias="notaCreditoId")
    client_id: OptionalRef = Field(None, alias="clienteId")
    supplier_id: OptionalRef = Field(None, alias="proveedorId")
    proof: OptionalRef = Field(None, alias="comprobante")
    notes: Optional[str] = Field(None, alias="notas")

    @field_serializer("client_id", "supplier_id")
    def _party_as_str(self, v: Optional[str]) -> str:
        # format historique : chaîne vide quand pas de client / fournisseur
        return v or ""
