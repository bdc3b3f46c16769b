from __future__ import annotations
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Any, Optional
import uuid

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict

def gen_id() -> str:
    return str(uuid.uuid4())


def blank_to_none(v: Any) -> Any:
    if v is None:
        return None
    if isinstance(v, str) and not v.strip():
        return None
    return v


def to_local_naive(v: datetime) -> datetime:
    # les dates "...Z" du front sont en UTC → heure locale sans tzinfo
    if v.tzinfo is not None:
        return v.astimezone().replace(tzinfo=None)
    return v


# "" et absent désignent la même chose : pas de référence
OptionalRef = Annotated[Optional[str], BeforeValidator(blank_to_none)]
LocalDateTime = Annotated[datetime, AfterValidator(to_local_naive)]
Money = Decimal

ZERO = Decimal("0")


class Record(BaseModel):
    """Base des enregistrements stockés : clés JSON camelCase (alias), noms Python snake_case."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def label_for(labels: dict[str, str], value: str) -> str:
    """Libellé d'affichage d'une valeur d'énumération ; une valeur inconnue est une erreur."""
    try:
        return labels[value]
    except KeyError:
        raise ValueError(f"unknown value {value!r}, expected one of {sorted(labels)}") from None
