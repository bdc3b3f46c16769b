from datetime import datetime
from decimal import Decimal

import pytest

from powerrent.errors import AlreadyAppliedError, ExcessiveCreditNoteAmountError, NotFoundError
from powerrent.models.accounting import CREDIT_NOTE_CATEGORY
from powerrent.models.credit_note import CreditNote
from powerrent.models.movement import Movement
from powerrent.models.payment import Payment
from powerrent.services.credit_note_service import (
    apply_credit_note,
    available_credit_notes,
    check_credit_note_amount,
    credited_total,
    effective_amount,
    total_available_for,
)

D = datetime(2024, 3, 1)


def mov(direction, amount, category="Renta de Generadores", payment_id=None, **kw):
    return Movement(
        direction=direction, category=category, description="x", amount=Decimal(amount),
        date=D, method="efectivo", payment_id=payment_id, **kw,
    )


def pay(pid, amount, direction="ingreso", client=None, supplier=None):
    return Payment(
        id=pid, direction=direction, category="Renta de Generadores", description="x",
        amount=Decimal(amount), date=D, method="efectivo", client_id=client, supplier_id=supplier,
    )


def note(nid, pid, amount, applied=False, status="activa"):
    return CreditNote(id=nid, payment_id=pid, amount=Decimal(amount), date=D, applied=applied, status=status)


class TestEffectiveAmount:
    def test_income_is_reduced_by_matching_credit_notes(self):
        income = mov("ingreso", "1000", payment_id="p1")
        log = [
            income,
            mov("egreso", "200", CREDIT_NOTE_CATEGORY, payment_id="p1"),
            mov("egreso", "50", CREDIT_NOTE_CATEGORY, payment_id="p1"),
            mov("egreso", "300", CREDIT_NOTE_CATEGORY, payment_id="p2"),
            mov("egreso", "70", "Combustible", payment_id="p1"),
        ]
        assert effective_amount(income, log) == Decimal("750")

    def test_expense_is_unchanged(self):
        expense = mov("egreso", "200", CREDIT_NOTE_CATEGORY, payment_id="p1")
        assert effective_amount(expense, [expense]) == Decimal("200")

    def test_income_without_payment_is_never_adjusted(self):
        income = mov("ingreso", "500")
        orphan_note = mov("egreso", "100", CREDIT_NOTE_CATEGORY)
        assert effective_amount(income, [income, orphan_note]) == Decimal("500")


def test_available_credit_notes_filters_applied():
    notes = [note("n1", "p1", 10), note("n2", "p1", 20, applied=True)]
    assert [n.id for n in available_credit_notes(notes)] == ["n1"]


def test_total_available_for_client_and_supplier():
    payments = [
        pay("p1", 1000, client="c1"),
        pay("p2", 1000, client="c2"),
        pay("p3", 500, direction="egreso", supplier="s1"),
    ]
    notes = [
        note("n1", "p1", 100),
        note("n2", "p1", 40, applied=True),
        note("n3", "p2", 70),
        note("n4", "p3", 30),
        note("n5", "missing", 999),
    ]
    assert total_available_for("c1", "ingreso", notes, payments) == Decimal("100")
    assert total_available_for("s1", "egreso", notes, payments) == Decimal("30")
    assert total_available_for("s1", "ingreso", notes, payments) == Decimal("0")


class TestApplyCreditNote:
    def test_returns_new_collection(self):
        notes = [note("n1", "p1", 10), note("n2", "p1", 20)]
        updated = apply_credit_note("n1", notes)

        assert [n.applied for n in updated] == [True, False]
        # la collection d'entrée reste intacte
        assert notes[0].applied is False

    def test_reapplying_is_flagged(self):
        updated = apply_credit_note("n1", [note("n1", "p1", 10)])
        with pytest.raises(AlreadyAppliedError):
            apply_credit_note("n1", updated)

    def test_unknown_note(self):
        with pytest.raises(NotFoundError):
            apply_credit_note("zzz", [note("n1", "p1", 10)])


def test_credited_total_counts_every_status():
    notes = [note("n1", "p1", 300), note("n2", "p1", 200, status="cancelada"), note("n3", "p2", 50)]
    assert credited_total("p1", notes) == Decimal("500")


def test_cancelled_note_still_caps_new_notes(ledger, make_payment):
    payment, _ = ledger.record_payment(make_payment(monto=1000))
    first, _ = ledger.record_credit_note({"pagoId": payment.id, "monto": 800, "motivo": "Ajuste"})
    ledger.save_credit_notes([first.model_copy(update={"status": "cancelada"})])

    with pytest.raises(ExcessiveCreditNoteAmountError):
        ledger.record_credit_note({"pagoId": payment.id, "monto": 800, "motivo": "Otra"})

    income = next(m for m in ledger.list_movements() if m.credit_note_id is None)
    assert effective_amount(income, ledger.list_movements()) == Decimal("200")


def test_check_credit_note_amount_is_cumulative():
    payment = pay("p1", 1000)
    existing = [note("n1", "p1", 600)]

    check_credit_note_amount(payment, Decimal("400"), existing)
    with pytest.raises(ExcessiveCreditNoteAmountError):
        check_credit_note_amount(payment, Decimal("500"), existing)
