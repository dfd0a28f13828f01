"""Taxonomie des erreurs du magasin de scripts.

Chaque erreur porte un `code` stable que la couche transport traduit en statut HTTP. Les détails
éventuels (`details`) sont sérialisables JSON et destinés à l'appelant.
"""

from __future__ import annotations

from typing import Any


class ScriptStoreError(Exception):
    """Erreur de base du domaine script."""

    code = "SCRIPT_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Initialise l'erreur avec un message et des détails optionnels."""
        super().__init__(message)
        self.message = message
        self.details = details


class NotFound(ScriptStoreError):
    """Présentateur, script ou entrée absent, ou appelant non propriétaire.

    Les deux cas ne sont jamais distingués pour ne pas révéler l'existence d'une ressource.
    """

    code = "NOT_FOUND"


class VersionConflict(ScriptStoreError):
    """La version attendue ne correspond plus à la version stockée."""

    code = "CONFLICT"

    def __init__(self, server_content: str, server_version: int) -> None:
        """Porte le contenu et la version serveur pour résolution sans second aller-retour."""
        super().__init__(
            "script version conflict",
            {"server_content": server_content, "server_version": server_version},
        )
        self.server_content = server_content
        self.server_version = server_version


class ValidationFailed(ScriptStoreError):
    """Entrée mal formée (instruction vide, preset inconnu, langue manquante...)."""

    code = "VALIDATION_ERROR"


class GenerationFailed(ScriptStoreError):
    """Le service de génération a échoué ou renvoyé une sortie inutilisable."""

    code = "GENERATION_FAILED"


class ContentTooShort(ScriptStoreError):
    """Le texte généré est sous le seuil minimal de caractères."""

    code = "CONTENT_TOO_SHORT"

    def __init__(self, got_chars: int, min_chars: int, preview: str) -> None:
        """Initialise avec la longueur obtenue, le seuil et un aperçu."""
        super().__init__(
            "generated content too short",
            {"got_chars": got_chars, "min_chars": min_chars, "preview": preview},
        )
        self.got_chars = got_chars
        self.min_chars = min_chars


class StorageError(ScriptStoreError):
    """Échec opaque du stockage relationnel."""

    code = "STORAGE_ERROR"
