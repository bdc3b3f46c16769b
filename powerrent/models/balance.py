from __future__ import annotations
from typing import Dict, Literal, Optional

from pydantic import Field

from .common import LocalDateTime, Money, Record, ZERO

Period = Literal["dia", "semana", "mes", "trimestre", "año", "total", "personalizado"]

PERIOD_LABELS = {
    "dia": "Hoy",
    "semana": "Esta Semana",
    "mes": "Este Mes",
    "trimestre": "Este Trimestre",
    "año": "Este Año",
    "total": "Total",
    "personalizado": "Personalizado",
}


class Balance(Record):
    """Agrégat calculé à la demande depuis le journal des mouvements, jamais persisté."""

    income_total: Money = Field(ZERO, alias="ingresos")
    expense_total: Money = Field(ZERO, alias="egresos")
    net_total: Money = Field(ZERO, alias="total")
    period: Period = Field("personalizado", alias="periodo")
    start: Optional[LocalDateTime] = Field(None, alias="fechaInicio")
    end: Optional[LocalDateTime] = Field(None, alias="fechaFin")
    income_by_category: Dict[str, Money] = Field(default_factory=dict, alias="detalleIngresos")
    expense_by_category: Dict[str, Money] = Field(default_factory=dict, alias="detalleEgresos")
    # position de trésorerie par moyen de paiement (signée)
    totals_by_method: Dict[str, Money] = Field(default_factory=dict, alias="totalesPorMetodo")
