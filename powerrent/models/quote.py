from __future__ import annotations
from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import BeforeValidator, Field, model_validator

from .common import LocalDateTime, Money, OptionalRef, Record, ZERO, blank_to_none, gen_id

QuoteStatus = Literal["pendiente", "aprobada", "rechazada", "pagada"]

QUOTE_STATUS_LABELS = {
    "pendiente": "Pendiente",
    "aprobada": "Aprobada",
    "rechazada": "Rechazada",
    "pagada": "Pagada",
}


class QuoteItem(Record):
    description: str = Field(alias="descripcion")
    quantity: Money = Field(Money(1), alias="cantidad")
    unit_price: Money = Field(ZERO, alias="precioUnitario")
    total: Money = ZERO  # snapshot quantity × unit_price


class Quote(Record):
    id: str = Field(default_factory=gen_id)
    client_id: str = Field(alias="clienteId")
    date: LocalDateTime = Field(default_factory=datetime.now, alias="fecha")
    reservation_date: Annotated[Optional[LocalDateTime], BeforeValidator(blank_to_none)] = Field(None, alias="fechaReserva")
    items: List[QuoteItem] = Field(default_factory=list)
    subtotal: Money = ZERO
    tax: Money = Field(ZERO, alias="iva")
    total: Money = ZERO
    validity: str = Field("", alias="vigencia")
    notes: str = Field("", alias="notas")
    status: QuoteStatus = Field("pendiente", alias="estado")
    pdf_generated: bool = Field(False, alias="pdfGenerado")
    payment_id: OptionalRef = Field(None, alias="pagoId")

    @model_validator(mode="after")
    def _paid_iff_linked(self) -> "Quote":
        if (self.status == "pagada") != (self.payment_id is not None):
            raise ValueError("a quotation is 'pagada' exactly when it carries a pagoId")
        return self

    @property
    def is_paid(self) -> bool:
        return self.payment_id is not None
