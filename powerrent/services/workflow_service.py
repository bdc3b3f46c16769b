from __future__ import annotations

import logging
from typing import Any, List, Mapping, NamedTuple, Optional, Tuple, Union

from powerrent.errors import AlreadyAppliedError, InvalidAmountError, InvalidTransitionError
from powerrent.models.credit_note import CreditNote
from powerrent.models.movement import Movement
from powerrent.models.payment import Payment, PaymentInput
from powerrent.models.quote import Quote
from powerrent.services.credit_note_service import apply_credit_note
from powerrent.services.ledger_service import LedgerService
from powerrent.services.quote_service import QuoteService, is_payable
from powerrent.storage.repo import EntityStore

logger = logging.getLogger(__name__)


def _by_field_name(data: Mapping[str, Any]) -> dict:
    # clés du formulaire (alias camelCase) → noms des champs Python
    aliases = {f.alias: name for name, f in PaymentInput.model_fields.items() if f.alias}
    return {aliases.get(k, k): v for k, v in data.items()}


class PaymentResult(NamedTuple):
    payment: Payment
    movement: Movement
    credit_notes: List[CreditNote]
    quote: Optional[Quote]


class PaymentWorkflow:
    """Validation d'un paiement saisi : note de crédit consommée et devis soldé, sans écriture cachée."""

    def __init__(self, store: EntityStore):
        self.ledger = LedgerService(store)
        self.quotes = QuoteService(store)

    def submit_payment(
        self,
        data: Union[PaymentInput, Mapping[str, Any]],
        credit_note_id: Optional[str] = None,
        quote_ref: Optional[Tuple[str, str]] = None,
    ) -> PaymentResult:
        """quote_ref = (client_id, quote_id) du devis réglé par ce paiement."""
        raw = data.model_dump() if isinstance(data, PaymentInput) else _by_field_name(data)

        # Etape 1 : tout vérifier avant d'écrire quoi que ce soit
        notes = self.ledger.list_credit_notes()
        note: Optional[CreditNote] = None
        if credit_note_id:
            note = self.ledger.get_credit_note(credit_note_id)
            if note.applied:
                raise AlreadyAppliedError(f"credit note {note.id} has already been applied")

        quote: Optional[Quote] = None
        if quote_ref:
            quote = self.quotes.get_quote(*quote_ref)
            if not is_payable(quote):
                raise InvalidTransitionError(f"quotation {quote.id} cannot be paid (status {quote.status!r})")
            if raw.setdefault("direction", "ingreso") != "ingreso":
                raise InvalidTransitionError(f"quotation {quote.id} can only be settled by an income payment")
            raw["client_id"] = raw.get("client_id") or quote.client_id
            short = quote.id[:8]
            if raw.get("amount") in (None, ""):
                raw["amount"] = quote.total
            raw["description"] = raw.get("description") or f"Pago de cotización #{short}"
            raw["reference"] = f"Cotización #{short}"

        if note is not None:
            raw["credit_note_id"] = note.id
        inp = PaymentInput.model_validate(raw)
        if note is not None and inp.amount > note.amount:
            raise InvalidAmountError(f"payment amount {inp.amount} exceeds credit note value {note.amount}")

        # Etape 2 : paiement + mouvement
        payment, movement = self.ledger.record_payment(inp)

        # Etape 3 : note de crédit consommée (collection renvoyée puis persistée)
        if note is not None:
            notes = apply_credit_note(note.id, notes)
            self.ledger.save_credit_notes(notes)

        # Etape 4 : devis soldé
        if quote is not None and quote_ref is not None:
            quote = self.quotes.link_payment(quote_ref[0], quote.id, payment.id)

        logger.info("Paiement %s validé (note=%s, devis=%s)", payment.id, credit_note_id, quote.id if quote else None)
        return PaymentResult(payment, movement, notes, quote)
