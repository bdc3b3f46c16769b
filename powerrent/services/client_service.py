from __future__ import annotations
import logging
from typing import List

from powerrent.errors import NotFoundError, PaidQuoteDeletionError
from powerrent.models.client import Client
from powerrent.storage.repo import CLIENTS, EntityStore, append_model, load_models, remove_records, upsert_models

logger = logging.getLogger(__name__)


class ClientService:
    def __init__(self, store: EntityStore):
        self.store = store

    def list_clients(self) -> List[Client]:
        return load_models(self.store, CLIENTS, Client)

    def get_client(self, client_id: str) -> Client:
        for c in self.list_clients():
            if c.id == client_id:
                return c
        raise NotFoundError("client", client_id)

    def add_client(self, client: Client) -> Client:
        if any(r.get("id") == client.id for r in self.store.load(CLIENTS)):
            raise ValueError(f"client with id={client.id} already exists")
        append_model(self.store, CLIENTS, client)
        logger.info("Client %s ajouté (%s)", client.id, client.company_name)
        return client

    def update_client(self, client: Client) -> Client:
        self.get_client(client.id)
        upsert_models(self.store, CLIENTS, [client])
        return client

    def delete_client(self, client_id: str) -> None:
        client = self.get_client(client_id)
        # ses devis partent avec lui : refusé si l'un d'eux est déjà payé
        paid = [q.id for q in client.quotes if q.is_paid]
        if paid:
            raise PaidQuoteDeletionError(f"client {client_id} has paid quotations: {', '.join(paid)}")
        remove_records(self.store, CLIENTS, lambda r: r.get("id") == client_id)
        logger.info("Client %s supprimé", client_id)
