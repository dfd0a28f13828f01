# ============================================================
# Module : scriptvault/domain/entities.py
# Objet  : Objets domaine du script versionné (POPO).
# ============================================================
"""
Entités du domaine: présentateur, script courant et entrées d'historique.

Le script (document) est l'unique enregistrement mutable; l'historique est un journal en ajout seul
de copies intégrales du contenu, indexé par numéro de version.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class HistorySource(str, Enum):
    """Raison de création d'une entrée d'historique."""

    MANUAL_SNAPSHOT = "manual-snapshot"
    AUTOSAVE = "autosave"
    GENERATED = "generated"
    TRANSFORMED = "transformed"
    RESTORE = "restore"
    BOOTSTRAP = "bootstrap"
    PRE_RESTORE = "pre-restore"


@dataclass
class Presenter:
    """Entité propriétaire d'un script (avatar vidéo d'un utilisateur)."""

    id: str
    user_id: str
    name: str
    context: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None


@dataclass
class ScriptDocument:
    """
    Script courant d'un présentateur.

    Attributs
    - id: identifiant opaque, immuable.
    - presenter_id: entité propriétaire (unique: un script par présentateur).
    - content: texte parlé, mutable.
    - language: code langue court.
    - version: compteur >= 1, +1 exactement à chaque mutation acceptée.
    - updated_at / updated_by: horodatage et auteur de la dernière mutation.
    """

    id: str
    presenter_id: str
    content: str
    language: str
    version: int
    updated_at: datetime | None = None
    updated_by: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Représentation sérialisable exposée par l'API."""
        return {
            "id": self.id,
            "presenter_id": self.presenter_id,
            "content": self.content,
            "language": self.language,
            "version": self.version,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "updated_by": self.updated_by,
        }


@dataclass
class HistoryEntry:
    """
    Copie immuable du contenu d'un script à une version donnée.

    `content` vaut None lorsque l'entrée est résumée dans une liste (contenu volumineux); il faut
    alors la relire individuellement. `version` vaut None pour la copie de sécurité pré-restauration.
    """

    id: int
    script_id: str
    version: int | None
    source: HistorySource
    meta: dict[str, Any]
    content: str | None
    content_length: int
    preview: str = ""
    created_at: datetime | None = None
    created_by: str | None = None

    @property
    def is_summary(self) -> bool:
        """Vrai si le contenu n'est pas embarqué."""
        return self.content is None

    def to_dict(self) -> dict[str, Any]:
        """Représentation sérialisable exposée par l'API."""
        return {
            "id": self.id,
            "script_id": self.script_id,
            "version": self.version,
            "source": self.source.value,
            "meta": self.meta,
            "content": self.content,
            "content_length": self.content_length,
            "preview": self.preview,
            "is_summary": self.is_summary,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "created_by": self.created_by,
        }
