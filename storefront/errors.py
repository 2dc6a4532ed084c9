"""
Exceptions métier de la boutique.
Les erreurs d'entrée client restent des HTTPException (levées au plus près de la validation);
celles-ci couvrent l'accès aux données et la réconciliation des paiements.
"""


class StorefrontError(Exception):
    """Racine des erreurs métier."""


class DataStoreError(StorefrontError):
    """Lecture/écriture Supabase en échec (réseau, RLS, table absente...)."""

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.code = code


class MetadataError(StorefrontError):
    """Métadonnées de session Stripe illisibles (items JSON invalide)."""


class IncompleteSessionError(StorefrontError):
    """Session complétée sans les données nécessaires: on acquitte sans rien modifier."""


class FulfilmentError(StorefrontError):
    """Étape fatale pendant l'application d'une commande (produit introuvable, conflit de stock)."""
