from __future__ import annotations
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BeforeValidator, EmailStr, Field

from .common import LocalDateTime, Record, blank_to_none, gen_id
from .quote import Quote


class Client(Record):
    id: str = Field(default_factory=gen_id)
    company_name: str = Field(alias="nombreEmpresa")
    contact_name: str = Field("", alias="nombreContacto")
    contact_phone: str = Field("", alias="telefonoContacto")
    email: Annotated[Optional[EmailStr], BeforeValidator(blank_to_none)] = None
    address: str = Field("", alias="direccion")
    rfc: str = ""
    notes: Optional[str] = Field(None, alias="notas")
    registered_at: LocalDateTime = Field(default_factory=datetime.now, alias="fechaRegistro")
    quotes: List[Quote] = Field(default_factory=list, alias="cotizaciones")

    def find_quote(self, quote_id: str) -> Optional[Quote]:
        for q in self.quotes:
            if q.id == quote_id:
                return q
        return None
