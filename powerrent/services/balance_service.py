from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from powerrent.models.accounting import Direction
from powerrent.models.balance import Balance, Period
from powerrent.models.common import ZERO, to_local_naive
from powerrent.models.movement import Movement
from powerrent.services.credit_note_service import effective_amount
from powerrent.services.ledger_service import sort_movements
from powerrent.storage.repo import MOVEMENTS, EntityStore, load_models

logger = logging.getLogger(__name__)

Window = Tuple[Optional[datetime], Optional[datetime]]

HUNDRED = Decimal("100")


# ---------- Fenêtres de dates ---------- #

def _day_start(d: date) -> datetime:
    return datetime.combine(d, time.min)


def _day_end(d: date) -> datetime:
    return datetime.combine(d, time.max)


def _month_end(year: int, month: int) -> date:
    if month == 12:
        return date(year, 12, 31)
    return date(year, month + 1, 1) - timedelta(days=1)


def resolve_period(period: Period, now: Optional[datetime] = None) -> Window:
    """Bornes (incluses, heure locale) d'une période prédéfinie ; 'total' = pas de borne.

    'personalizado' n'a pas de bornes propres : passer par compute_balance.
    """
    today = to_local_naive(now or datetime.now()).date()
    if period == "dia":
        return _day_start(today), _day_end(today)
    if period == "semana":
        # semaine du dimanche au samedi
        start = today - timedelta(days=(today.weekday() + 1) % 7)
        return _day_start(start), _day_end(start + timedelta(days=6))
    if period == "mes":
        return _day_start(today.replace(day=1)), _day_end(_month_end(today.year, today.month))
    if period == "trimestre":
        first_month = 3 * ((today.month - 1) // 3) + 1
        return (
            _day_start(date(today.year, first_month, 1)),
            _day_end(_month_end(today.year, first_month + 2)),
        )
    if period == "año":
        return _day_start(date(today.year, 1, 1)), _day_end(date(today.year, 12, 31))
    if period == "total":
        return None, None
    if period == "personalizado":
        raise ValueError("'personalizado' has no preset bounds, use compute_balance(movements, start, end)")
    raise ValueError(f"unknown period {period!r}")


def _in_window(m: Movement, start: Optional[datetime], end: Optional[datetime]) -> bool:
    if start is not None and m.date < start:
        return False
    if end is not None and m.date > end:
        return False
    return True


# ---------- Agrégation ---------- #

def compute_balance(
    movements: Sequence[Movement],
    start: Optional[datetime],
    end: Optional[datetime],
    category: Optional[str] = None,
    method: Optional[str] = None,
    period: Period = "personalizado",
) -> Balance:
    """
    Balance d'une fenêtre [start, end] (bornes None = non bornée).
    - montants effectifs : revenus diminués des notes de crédit du même paiement
    - détail par catégorie selon les filtres catégorie / moyen de paiement
    - totaux par moyen de paiement : fenêtre seule, sans les filtres
    """
    # bornes au même format que les dates des mouvements (heure locale, sans tzinfo)
    start = to_local_naive(start) if start is not None else None
    end = to_local_naive(end) if end is not None else None
    in_window = sort_movements(m for m in movements if _in_window(m, start, end))

    income = ZERO
    expense = ZERO
    income_by_cat: Dict[str, Decimal] = {}
    expense_by_cat: Dict[str, Decimal] = {}
    by_method: Dict[str, Decimal] = {}

    for m in in_window:
        amount = effective_amount(m, movements)
        sign = 1 if m.direction == "ingreso" else -1
        by_method[m.method] = by_method.get(m.method, ZERO) + sign * amount

        if category is not None and m.category != category:
            continue
        if method is not None and m.method != method:
            continue
        if m.direction == "ingreso":
            income += amount
            income_by_cat[m.category] = income_by_cat.get(m.category, ZERO) + amount
        else:
            expense += amount
            expense_by_cat[m.category] = expense_by_cat.get(m.category, ZERO) + amount

    return Balance(
        income_total=income,
        expense_total=expense,
        net_total=income - expense,
        period=period,
        start=start,
        end=end,
        income_by_category=income_by_cat,
        expense_by_category=expense_by_cat,
        totals_by_method=by_method,
    )


def compute_period_balance(
    movements: Sequence[Movement],
    period: Period,
    now: Optional[datetime] = None,
    category: Optional[str] = None,
    method: Optional[str] = None,
) -> Balance:
    start, end = resolve_period(period, now)
    return compute_balance(movements, start, end, category=category, method=method, period=period)


def _percent(part: Decimal, base: Decimal) -> Decimal:
    if base == 0:
        return ZERO
    return part / base * HUNDRED


def profit_margin(balance: Balance) -> Decimal:
    """Marge (%) = net / revenus ; 0 sans revenus."""
    return _percent(balance.net_total, balance.income_total)


def category_shares(balance: Balance, direction: Direction) -> Dict[str, Decimal]:
    """Part (%) de chaque catégorie dans le total revenus ou dépenses."""
    if direction == "ingreso":
        detail, base = balance.income_by_category, balance.income_total
    else:
        detail, base = balance.expense_by_category, balance.expense_total
    return {cat: _percent(amount, base) for cat, amount in detail.items()}


def daily_series(movements: Iterable[Movement], start: datetime, end: datetime) -> List[Dict[str, object]]:
    """Une ligne par jour (graphique) : montants bruts, sans ajustement des notes de crédit."""
    start, end = to_local_naive(start), to_local_naive(end)
    per_day: Dict[date, List[Decimal]] = {}
    for m in movements:
        if not _in_window(m, _day_start(start.date()), _day_end(end.date())):
            continue
        row = per_day.setdefault(m.date.date(), [ZERO, ZERO])
        row[0 if m.direction == "ingreso" else 1] += m.amount

    out: List[Dict[str, object]] = []
    day = start.date()
    while day <= end.date():
        inc, exp = per_day.get(day, [ZERO, ZERO])
        out.append({"fecha": day, "ingresos": inc, "egresos": exp, "balance": inc - exp})
        day += timedelta(days=1)
    return out


# ---------- Service ---------- #

class BalanceService:
    def __init__(self, store: EntityStore) -> None:
        self.store = store

    def _movements(self) -> List[Movement]:
        return load_models(self.store, MOVEMENTS, Movement)

    def balance(self, start: Optional[datetime], end: Optional[datetime],
                category: Optional[str] = None, method: Optional[str] = None) -> Balance:
        return compute_balance(self._movements(), start, end, category=category, method=method)

    def period_balance(self, period: Period, now: Optional[datetime] = None,
                       category: Optional[str] = None, method: Optional[str] = None) -> Balance:
        b = compute_period_balance(self._movements(), period, now, category=category, method=method)
        logger.debug("Balance %s: revenus=%s dépenses=%s", period, b.income_total, b.expense_total)
        return b
