from __future__ import annotations
from datetime import datetime
from typing import Optional

from pydantic import Field

from .accounting import Direction, PaymentMethod, PaymentStatus
from .common import LocalDateTime, Money, OptionalRef, Record, gen_id


class PaymentInput(Record):
    """Saisie du formulaire de paiement (sans id ni statut)."""

    direction: Direction = Field(alias="tipo")
    category: str = Field(alias="categoria")
    description: str = Field(alias="concepto")
    amount: Money = Field(alias="monto")
    date: LocalDateTime = Field(default_factory=datetime.now, alias="fecha")
    method: PaymentMethod = Field("efectivo", alias="metodoPago")
    reference: str = Field("", alias="referencia")
    proof: OptionalRef = Field(None, alias="comprobante")
    client_id: OptionalRef = Field(None, alias="clienteId")
    supplier_id: OptionalRef = Field(None, alias="proveedorId")
    credit_note_id: OptionalRef = Field(None, alias="notaCreditoId")


class Payment(Record):
    id: str = Field(default_factory=gen_id)
    direction: Direction = Field(alias="tipo")
    category: str = Field(alias="categoria")
    description: str = Field(alias="concepto")
    amount: Money = Field(alias="monto")
    date: LocalDateTime = Field(alias="fecha")
    method: PaymentMethod = Field(alias="metodoPago")
    reference: str = Field("", alias="referencia")
    proof: OptionalRef = Field(None, alias="comprobante")
    client_id: OptionalRef = Field(None, alias="cliente")
    supplier_id: OptionalRef = Field(None, alias="proveedor")
    status: PaymentStatus = Field("completado", alias="estado")
    credit_note_id: OptionalRef = Field(None, alias="notaCreditoId")

    def counterparty_id(self) -> Optional[str]:
        # client pour un revenu, fournisseur pour une dépense
        return self.client_id if self.direction == "ingreso" else self.supplier_id
