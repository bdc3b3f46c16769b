"""Erreurs métier du noyau financier.

Toutes sont levées de façon synchrone vers l'appelant ; l'interface se charge
du message utilisateur.
"""
from __future__ import annotations


class PowerRentError(Exception):
    pass


class InvalidAmountError(PowerRentError, ValueError):
    """Montant nul ou négatif."""


class ExcessiveCreditNoteAmountError(PowerRentError, ValueError):
    """Les notes de crédit dépasseraient le montant du paiement."""


class AlreadyAppliedError(PowerRentError):
    """Note de crédit déjà consommée."""


class InvalidTransitionError(PowerRentError):
    """Changement de statut de devis interdit."""


class PaidQuoteDeletionError(InvalidTransitionError):
    """Un devis lié à un paiement ne peut pas être supprimé."""


class NotFoundError(PowerRentError, LookupError):
    def __init__(self, entity: str, obj_id: object) -> None:
        self.entity = entity
        self.obj_id = obj_id
        super().__init__(f"{entity} with id={obj_id} not found")
