from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict, Iterable, List, Mapping, Protocol, Type, TypeVar

from pydantic import ValidationError

from powerrent.models.common import Record

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=Record)

Records = List[Dict[str, Any]]

# noms des collections (clés historiques du stockage local)
PAYMENTS = "pagos"
MOVEMENTS = "movimientos"
CREDIT_NOTES = "notasCredito"
CLIENTS = "clientes"


class EntityStore(Protocol):
    """
    Contrat de persistance : une collection nommée = une liste d'enregistrements JSON.
    - load() renvoie [] si la collection n'existe pas
    - save() écrase toute la collection (pas de fusion)

    Aucune isolation : deux processus qui écrivent la même collection
    peuvent s'écraser mutuellement (limite acceptée).
    """

    def load(self, collection: str) -> Records: ...

    def save(self, collection: str, records: Iterable[Mapping[str, Any]]) -> None: ...


class MemoryStore:
    """Store en mémoire (tests, scripts). Copie profonde en entrée et en sortie."""

    def __init__(self, initial: Mapping[str, Iterable[Mapping[str, Any]]] | None = None) -> None:
        self._data: Dict[str, Records] = {}
        for name, records in (initial or {}).items():
            self.save(name, records)

    def load(self, collection: str) -> Records:
        return copy.deepcopy(self._data.get(collection, []))

    def save(self, collection: str, records: Iterable[Mapping[str, Any]]) -> None:
        self._data[collection] = [copy.deepcopy(dict(r)) for r in records]

    def collections(self) -> List[str]:
        return sorted(self._data)


def load_models(store: EntityStore, collection: str, model: Type[M]) -> List[M]:
    out: List[M] = []
    for d in store.load(collection):
        try:
            out.append(model.model_validate(d))
        except ValidationError as e:
            # On ignore les entrées invalides pour ne pas bloquer le reste
            logger.warning("Entrée %s ignorée dans %s (%d erreurs)", d.get("id"), collection, e.error_count())
    return out


# Les écritures passent par les enregistrements bruts : une entrée illisible
# par les modèles n'est jamais perdue lors d'une réécriture de la collection.

def append_model(store: EntityStore, collection: str, item: Record) -> None:
    store.save(collection, store.load(collection) + [item.to_record()])


def upsert_models(store: EntityStore, collection: str, items: Iterable[Record], key: str = "id") -> None:
    pending = {str(getattr(it, key)): it.to_record() for it in items}
    out: Records = []
    for r in store.load(collection):
        k = str(r.get(key))
        out.append(pending.pop(k) if k in pending else r)
    out.extend(pending.values())
    store.save(collection, out)


def remove_records(store: EntityStore, collection: str, predicate: Callable[[Dict[str, Any]], bool]) -> int:
    """Supprime les enregistrements vérifiant predicate ; renvoie le nombre supprimé."""
    data = store.load(collection)
    kept = [r for r in data if not predicate(r)]
    removed = len(data) - len(kept)
    if removed:
        store.save(collection, kept)
    return removed
