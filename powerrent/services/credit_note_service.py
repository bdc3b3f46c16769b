"""Rapprochement des notes de crédit.

Une note de crédit réduit la valeur effective d'un paiement. Elle est
"disponible" tant qu'elle n'a pas été sélectionnée pour compenser un nouveau
mouvement, puis "appliquée" (une seule fois).

Toutes les fonctions sont pures : elles renvoient de nouvelles valeurs et
laissent la persistance à l'appelant.
"""
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List, Sequence

from powerrent.errors import AlreadyAppliedError, ExcessiveCreditNoteAmountError, NotFoundError
from powerrent.models.accounting import CREDIT_NOTE_CATEGORY, Direction
from powerrent.models.common import ZERO
from powerrent.models.credit_note import CreditNote
from powerrent.models.movement import Movement
from powerrent.models.payment import Payment

logger = logging.getLogger(__name__)


def _is_credit_note_movement(m: Movement) -> bool:
    return m.direction == "egreso" and m.category == CREDIT_NOTE_CATEGORY


def effective_amount(movement: Movement, all_movements: Iterable[Movement]) -> Decimal:
    """Montant d'un revenu diminué des notes de crédit portant sur le même paiement.

    Les dépenses sont renvoyées telles quelles, de même qu'un revenu sans pagoId.
    """
    if movement.direction != "ingreso" or movement.payment_id is None:
        return movement.amount
    credited = sum(
        (m.amount for m in all_movements
         if _is_credit_note_movement(m) and m.payment_id == movement.payment_id),
        ZERO,
    )
    return movement.amount - credited


def available_credit_notes(all_credit_notes: Iterable[CreditNote]) -> List[CreditNote]:
    return [n for n in all_credit_notes if not n.applied]


def total_available_for(
    entity_id: str,
    direction: Direction,
    all_credit_notes: Iterable[CreditNote],
    all_payments: Iterable[Payment],
) -> Decimal:
    """Somme des notes disponibles dont le paiement d'origine appartient à entity_id
    (client pour un revenu, fournisseur pour une dépense)."""
    payments = {p.id: p for p in all_payments}
    total = ZERO
    for note in available_credit_notes(all_credit_notes):
        p = payments.get(note.payment_id)
        if p is None:
            continue
        owner = p.client_id if direction == "ingreso" else p.supplier_id
        if owner is not None and owner == entity_id:
            total += note.amount
    return total


def credited_total(payment_id: str, all_credit_notes: Iterable[CreditNote]) -> Decimal:
    """Total déjà crédité sur un paiement, toutes notes confondues (leur mouvement reste au journal)."""
    return sum(
        (n.amount for n in all_credit_notes if n.payment_id == payment_id),
        ZERO,
    )


def check_credit_note_amount(payment: Payment, amount: Decimal, all_credit_notes: Iterable[CreditNote]) -> None:
    """Refuse une note si le cumul des notes du paiement dépasserait son montant."""
    existing = credited_total(payment.id, all_credit_notes)
    if existing + amount > payment.amount:
        raise ExcessiveCreditNoteAmountError(
            f"credit notes for payment {payment.id} would total {existing + amount}, "
            f"above the payment amount {payment.amount}"
        )


def _mark_applied(note_id: str, all_credit_notes: Sequence[CreditNote]) -> List[CreditNote]:
    # idempotent : une note déjà appliquée reste telle quelle
    return [
        n.model_copy(update={"applied": True}) if n.id == note_id else n
        for n in all_credit_notes
    ]


def apply_credit_note(note_id: str, all_credit_notes: Sequence[CreditNote]) -> List[CreditNote]:
    """Renvoie une nouvelle collection où la note note_id est marquée appliquée.

    Une seconde application explicite lève AlreadyAppliedError (double consommation).
    """
    note = next((n for n in all_credit_notes if n.id == note_id), None)
    if note is None:
        raise NotFoundError("credit note", note_id)
    if note.applied:
        raise AlreadyAppliedError(f"credit note {note_id} has already been applied")
    logger.info("Note de crédit %s appliquée", note_id)
    return _mark_applied(note_id, all_credit_notes)
