from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Tuple, Union

from powerrent.errors import InvalidAmountError, NotFoundError
from powerrent.models.accounting import CREDIT_NOTE_CATEGORY
from powerrent.models.credit_note import CreditNote, CreditNoteInput
from powerrent.models.movement import Movement
from powerrent.models.payment import Payment, PaymentInput
from powerrent.services.credit_note_service import check_credit_note_amount
from powerrent.storage.repo import (
    CREDIT_NOTES,
    MOVEMENTS,
    PAYMENTS,
    EntityStore,
    append_model,
    load_models,
    remove_records,
    upsert_models,
)

logger = logging.getLogger(__name__)


# ---------- Projections (pures) ---------- #

def project_payment(payment: Payment) -> Movement:
    """Mouvement du journal correspondant à un paiement (mêmes champs, pagoId = id du paiement)."""
    return Movement(
        direction=payment.direction,
        category=payment.category,
        description=payment.description,
        amount=payment.amount,
        date=payment.date,
        method=payment.method,
        status=payment.status,
        reference=payment.reference,
        payment_id=payment.id,
        client_id=payment.client_id,
        supplier_id=payment.supplier_id,
        proof=payment.proof,
    )


def project_credit_note(note: CreditNote) -> Movement:
    # pagoId = paiement crédité : c'est ce qui permet l'ajustement du revenu
    return Movement(
        direction="egreso",
        category=CREDIT_NOTE_CATEGORY,
        description=f"Nota de Crédito - {note.reason}",
        amount=note.amount,
        date=note.date,
        method="transferencia",
        status="completado",
        reference=note.id,
        payment_id=note.payment_id,
        credit_note_id=note.id,
    )


def sort_movements(movements: Iterable[Movement]) -> List[Movement]:
    """Plus récent d'abord."""
    return sorted(movements, key=lambda m: m.date, reverse=True)


# ---------- Service ---------- #

class LedgerService:
    def __init__(self, store: EntityStore) -> None:
        self.store = store

    # ----- Lecture ----- #

    def list_payments(self) -> List[Payment]:
        return load_models(self.store, PAYMENTS, Payment)

    def list_movements(self) -> List[Movement]:
        return sort_movements(load_models(self.store, MOVEMENTS, Movement))

    def list_credit_notes(self) -> List[CreditNote]:
        return load_models(self.store, CREDIT_NOTES, CreditNote)

    def get_payment(self, payment_id: str) -> Payment:
        for p in self.list_payments():
            if p.id == payment_id:
                return p
        raise NotFoundError("payment", payment_id)

    def get_credit_note(self, note_id: str) -> CreditNote:
        for n in self.list_credit_notes():
            if n.id == note_id:
                return n
        raise NotFoundError("credit note", note_id)

    # ----- Paiements ----- #

    def record_payment(self, data: Union[PaymentInput, Mapping[str, Any]]) -> Tuple[Payment, Movement]:
        inp = data if isinstance(data, PaymentInput) else PaymentInput.model_validate(data)
        if inp.amount <= 0:
            raise InvalidAmountError(f"payment amount must be positive, got {inp.amount}")

        # un seul tiers pertinent : client pour un revenu, fournisseur pour une dépense
        income = inp.direction == "ingreso"
        payment = Payment(
            direction=inp.direction,
            category=inp.category,
            description=inp.description,
            amount=inp.amount,
            date=inp.date,
            method=inp.method,
            reference=inp.reference,
            proof=inp.proof,
            client_id=inp.client_id if income else None,
            supplier_id=None if income else inp.supplier_id,
            status="completado",
            credit_note_id=inp.credit_note_id,
        )
        movement = project_payment(payment)

        append_model(self.store, PAYMENTS, payment)
        append_model(self.store, MOVEMENTS, movement)
        logger.info("Paiement %s enregistré (%s %s %s)", payment.id, payment.direction, payment.amount, payment.method)
        return payment, movement

    def delete_payment(self, payment_id: str) -> None:
        """Supprime le paiement, ses mouvements et les notes de crédit qui le visent."""
        removed = remove_records(self.store, PAYMENTS, lambda r: r.get("id") == payment_id)
        removed_mov = remove_records(self.store, MOVEMENTS, lambda r: r.get("pagoId") == payment_id)
        removed_notes = remove_records(self.store, CREDIT_NOTES, lambda r: r.get("pagoId") == payment_id)
        if removed:
            logger.info("Paiement %s supprimé", payment_id)
        logger.debug(
            "Cascade paiement %s: %d mouvement(s), %d note(s) de crédit",
            payment_id, removed_mov, removed_notes,
        )

    # ----- Notes de crédit ----- #

    def record_credit_note(self, data: Union[CreditNoteInput, Mapping[str, Any]]) -> Tuple[CreditNote, Movement]:
        inp = data if isinstance(data, CreditNoteInput) else CreditNoteInput.model_validate(data)
        if inp.amount <= 0:
            raise InvalidAmountError(f"credit note amount must be positive, got {inp.amount}")

        payment = self.get_payment(inp.payment_id)
        check_credit_note_amount(payment, inp.amount, self.list_credit_notes())

        note = CreditNote(
            client_id=inp.client_id or payment.client_id,
            payment_id=payment.id,
            amount=inp.amount,
            date=inp.date,
            reason=inp.reason,
            status="activa",
            applied=False,
        )
        movement = project_credit_note(note)

        append_model(self.store, CREDIT_NOTES, note)
        append_model(self.store, MOVEMENTS, movement)
        logger.info("Note de crédit %s enregistrée sur le paiement %s (%s)", note.id, payment.id, note.amount)
        return note, movement

    def delete_credit_note(self, note_id: str) -> None:
        removed = remove_records(self.store, CREDIT_NOTES, lambda r: r.get("id") == note_id)
        removed_mov = remove_records(self.store, MOVEMENTS, lambda r: r.get("notaCreditoId") == note_id)
        if removed:
            logger.info("Note de crédit %s supprimée", note_id)
        logger.debug("Cascade note %s: %d mouvement(s)", note_id, removed_mov)

    def save_credit_notes(self, notes: Iterable[CreditNote]) -> None:
        """Persiste une collection renvoyée par le rapprochement (ex. apply_credit_note)."""
        upsert_models(self.store, CREDIT_NOTES, notes)
