from __future__ import annotations
from typing import Literal

# Référentiels du module finances (catégories proposées par les formulaires)

Direction = Literal["ingreso", "egreso"]
PaymentMethod = Literal["efectivo", "transferencia", "tarjeta", "cheque"]
PaymentStatus = Literal["pendiente", "completado", "cancelado"]

INCOME_CATEGORIES = (
    "Renta de Generadores",
    "Servicios Adicionales",
    "Mantenimiento",
    "Instalación",
    "Capacitación",
    "Depósitos",
    "Reembolsos",
    "Otros Ingresos",
)

EXPENSE_CATEGORIES = (
    "Mantenimiento",
    "Combustible",
    "Transporte",
    "Almacenamiento",
    "Seguros",
    "Nómina",
    "Impuestos",
    "Servicios",
    "Materiales",
    "Herramientas",
    "Marketing",
    "Capacitación",
    "Otros Gastos",
)

PAYMENT_METHODS: tuple[PaymentMethod, ...] = ("efectivo", "transferencia", "tarjeta", "cheque")

# catégorie portée par les mouvements issus d'une note de crédit
CREDIT_NOTE_CATEGORY = "Notas de Crédito"

DIRECTION_LABELS = {"ingreso": "Ingreso", "egreso": "Egreso"}
METHOD_LABELS = {
    "efectivo": "Efectivo",
    "transferencia": "Transferencia",
    "tarjeta": "Tarjeta",
    "cheque": "Cheque",
}
PAYMENT_STATUS_LABELS = {
    "pendiente": "Pendiente",
    "completado": "Completado",
    "cancelado": "Cancelado",
}


def all_categories() -> list[str]:
    """Catégories revenus + dépenses, sans doublons, dans l'ordre d'origine."""
    out: list[str] = []
    for c in INCOME_CATEGORIES + EXPENSE_CATEGORIES:
        if c not in out:
            out.append(c)
    return out
