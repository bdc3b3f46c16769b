from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple

from powerrent.errors import InvalidAmountError, InvalidTransitionError, NotFoundError, PaidQuoteDeletionError
from powerrent.models.client import Client
from powerrent.models.common import ZERO
from powerrent.models.quote import Quote, QuoteItem, QuoteStatus
from powerrent.services.client_service import ClientService
from powerrent.storage.repo import EntityStore

logger = logging.getLogger(__name__)

TAX_RATE = Decimal("0.16")  # IVA fixe, non configurable par devis

# pendiente → aprobada → pagada ; pendiente → rechazada
_TRANSITIONS: Dict[QuoteStatus, Tuple[QuoteStatus, ...]] = {
    "pendiente": ("aprobada", "rechazada"),
    "aprobada": ("pagada",),
    "rechazada": (),
    "pagada": (),
}

# statuts depuis lesquels le formulaire de paiement peut solder un devis
_PAYABLE: Tuple[QuoteStatus, ...] = ("pendiente", "aprobada")

SortField = Literal["fecha", "monto", "cliente"]


def _rebuild(quote: Quote, **changes: Any) -> Quote:
    # revalide le modèle (invariant pagada ⇔ pagoId)
    data = quote.model_dump()
    data.update(changes)
    return Quote.model_validate(data)


# ---------- Totaux / lignes ---------- #

def recompute_totals(quote: Quote) -> Quote:
    items = [it.model_copy(update={"total": it.quantity * it.unit_price}) for it in quote.items]
    subtotal = sum((it.total for it in items), ZERO)
    tax = subtotal * TAX_RATE
    return quote.model_copy(update={
        "items": items,
        "subtotal": subtotal,
        "tax": tax,
        "total": subtotal + tax,
    })


def add_item(quote: Quote, item: QuoteItem) -> Quote:
    if item.quantity <= 0 or item.unit_price <= 0:
        raise InvalidAmountError(
            f"quotation line needs positive quantity and unit price, got {item.quantity} × {item.unit_price}"
        )
    return recompute_totals(quote.model_copy(update={"items": [*quote.items, item]}))


def remove_item(quote: Quote, index: int) -> Quote:
    if not 0 <= index < len(quote.items):
        raise NotFoundError("quotation line", index)
    items = [it for i, it in enumerate(quote.items) if i != index]
    return recompute_totals(quote.model_copy(update={"items": items}))


# ---------- Cycle de vie ---------- #

def link_to_payment(quote: Quote, payment_id: str) -> Quote:
    """Seul chemin vers 'pagada' : pose pagoId et le statut en une seule opération."""
    if not payment_id:
        raise InvalidTransitionError(f"quotation {quote.id}: a payment id is required to mark it paid")
    if quote.payment_id is not None:
        raise InvalidTransitionError(f"quotation {quote.id} is already linked to payment {quote.payment_id}")
    if quote.status not in _PAYABLE:
        raise InvalidTransitionError(f"quotation {quote.id} cannot be paid from status {quote.status!r}")
    return _rebuild(quote, status="pagada", payment_id=payment_id)


def transition(quote: Quote, new_status: QuoteStatus, payment_id: Optional[str] = None) -> Quote:
    if quote.payment_id is not None:
        raise InvalidTransitionError(f"quotation {quote.id} is paid, its status can no longer change")
    if new_status not in _TRANSITIONS[quote.status]:
        raise InvalidTransitionError(f"quotation {quote.id}: {quote.status!r} → {new_status!r} is not allowed")
    if new_status == "pagada":
        if not payment_id:
            raise InvalidTransitionError(f"quotation {quote.id}: 'pagada' requires a payment id")
        return link_to_payment(quote, payment_id)
    return _rebuild(quote, status=new_status)


def is_payable(quote: Quote) -> bool:
    return quote.payment_id is None and quote.status in _PAYABLE


def payable_quotes(quotes: Iterable[Quote]) -> List[Quote]:
    return [q for q in quotes if is_payable(q)]


def search_quotes(
    clients: Iterable[Client],
    *,
    term: str = "",
    client_id: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
    min_total: Optional[Decimal] = None,
    max_total: Optional[Decimal] = None,
    sort_by: SortField = "fecha",
    descending: bool = True,
) -> List[Tuple[Quote, Client]]:
    """Recherche des devis payables (id ou raison sociale, client, dates, montants)."""
    needle = term.strip().casefold()
    out: List[Tuple[Quote, Client]] = []
    for c in clients:
        if client_id and c.id != client_id:
            continue
        for q in payable_quotes(c.quotes):
            if needle and needle not in q.id.casefold() and needle not in c.company_name.casefold():
                continue
            if date_from is not None and q.date < date_from:
                continue
            if date_to is not None and q.date > date_to:
                continue
            if min_total is not None and q.total < min_total:
                continue
            if max_total is not None and q.total > max_total:
                continue
            out.append((q, c))

    if sort_by == "monto":
        out.sort(key=lambda qc: qc[0].total, reverse=descending)
    elif sort_by == "cliente":
        out.sort(key=lambda qc: qc[1].company_name.casefold(), reverse=descending)
    else:
        out.sort(key=lambda qc: qc[0].date, reverse=descending)
    return out


# ---------- Service ---------- #

class QuoteService:
    """Devis persistés dans la fiche de leur client (collection clientes)."""

    def __init__(self, store: EntityStore) -> None:
        self.clients = ClientService(store)

    def _replace(self, client: Client, quotes: List[Quote]) -> None:
        self.clients.update_client(client.model_copy(update={"quotes": quotes}))

    def list_quotes(self, client_id: Optional[str] = None) -> List[Quote]:
        if client_id:
            return list(self.clients.get_client(client_id).quotes)
        return [q for c in self.clients.list_clients() for q in c.quotes]

    def get_quote(self, client_id: str, quote_id: str) -> Quote:
        q = self.clients.get_client(client_id).find_quote(quote_id)
        if q is None:
            raise NotFoundError("quotation", quote_id)
        return q

    def save_quote(self, quote: Quote) -> Quote:
        """Ajoute ou remplace le devis dans la fiche client, totaux recalculés.

        Le statut et pagoId ne changent que par change_status / link_payment.
        """
        client = self.clients.get_client(quote.client_id)
        q = recompute_totals(quote)
        existing = client.find_quote(q.id)
        if existing is None:
            if q.status != "pendiente":
                raise InvalidTransitionError(f"new quotation {q.id} must start as 'pendiente', got {q.status!r}")
            quotes = [*client.quotes, q]
        else:
            if (q.status, q.payment_id) != (existing.status, existing.payment_id):
                raise InvalidTransitionError(f"quotation {q.id}: use change_status to modify its status")
            quotes = [q if x.id == q.id else x for x in client.quotes]
        self._replace(client, quotes)
        logger.info("Devis %s enregistré pour le client %s (total %s)", q.id, client.id, q.total)
        return q

    def _store_updated(self, client_id: str, updated: Quote) -> Quote:
        client = self.clients.get_client(client_id)
        self._replace(client, [updated if x.id == updated.id else x for x in client.quotes])
        return updated

    def change_status(self, client_id: str, quote_id: str, new_status: QuoteStatus,
                      payment_id: Optional[str] = None) -> Quote:
        q = transition(self.get_quote(client_id, quote_id), new_status, payment_id)
        logger.info("Devis %s → %s", quote_id, q.status)
        return self._store_updated(client_id, q)

    def link_payment(self, client_id: str, quote_id: str, payment_id: str) -> Quote:
        q = link_to_payment(self.get_quote(client_id, quote_id), payment_id)
        logger.info("Devis %s payé par %s", quote_id, payment_id)
        return self._store_updated(client_id, q)

    def delete_quote(self, client_id: str, quote_id: str) -> None:
        q = self.get_quote(client_id, quote_id)
        if q.is_paid:
            raise PaidQuoteDeletionError(f"quotation {quote_id} is linked to payment {q.payment_id}")
        client = self.clients.get_client(client_id)
        self._replace(client, [x for x in client.quotes if x.id != quote_id])
        logger.info("Devis %s supprimé", quote_id)

    def payable_quotes_for(self, client_id: str) -> List[Quote]:
        return payable_quotes(self.clients.get_client(client_id).quotes)

    def search(self, **filters: Any) -> List[Tuple[Quote, Client]]:
        return search_quotes(self.clients.list_clients(), **filters)
