# ============================================================
# Module : scriptvault/infra/repo/script_repo.py
# Objet  : Accès SQL au script courant et à son historique.
# Notes  : les mises à jour de version passent toutes par
#          compare_and_set (UPDATE ... WHERE version = :attendue).
# ============================================================

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ...domain.entities import HistoryEntry, HistorySource, ScriptDocument
from .db import insert_ignore
from .models import ScriptORM, ScriptVersionORM

# Plus grand identifiant représentable par une colonne INTEGER 64 bits
MAX_ENTRY_ID = 2**63 - 1

_SCRIPT_COLUMNS = (
    ScriptORM.id,
    ScriptORM.presenter_id,
    ScriptORM.content,
    ScriptORM.language,
    ScriptORM.version,
    ScriptORM.updated_at,
    ScriptORM.updated_by,
)


class ScriptRepo:
    """Lecture/écriture du script courant (une ligne par présentateur)."""

    def __init__(self, session: Session) -> None:
        """Construit le repo avec une session (SQLAlchemy)."""
        self._session = session

    def get_by_presenter(self, presenter_id: str) -> ScriptDocument | None:
        """Retourne le script du présentateur, ou None s'il n'est pas encore provisionné."""
        row = self._session.execute(
            select(*_SCRIPT_COLUMNS).where(ScriptORM.presenter_id == presenter_id)
        ).first()
        return self._to_domain(row) if row else None

    def create_if_absent(self, presenter_id: str, language: str, user_id: str) -> bool:
        """Insère un script vide en version 1 sauf si le présentateur en a déjà un.

        Retourne True si cet appel a créé la ligne. Contrainte d'unicité: (presenter_id).
        """
        now = datetime.now(UTC)
        return insert_ignore(
            self._session,
            ScriptORM,
            {
                "id": uuid.uuid4().hex,
                "presenter_id": presenter_id,
                "content": "",
                "language": language,
                "version": 1,
                "created_at": now,
                "created_by": user_id,
                "updated_at": now,
                "updated_by": user_id,
            },
            ("presenter_id",),
        )

    def compare_and_set(
        self,
        script_id: str,
        expected_version: int,
        content: str,
        user_id: str,
        language: str | None = None,
    ) -> ScriptDocument | None:
        """Remplace le contenu et incrémente la version si elle vaut encore `expected_version`.

        Une seule instruction UPDATE ... RETURNING: le contrôle et l'écriture sont atomiques au
        niveau de la ligne. Retourne None si aucune ligne n'a été modifiée (conflit).
        """
        values: dict[str, Any] = {
            "content": content,
            "version": ScriptORM.version + 1,
            "updated_at": datetime.now(UTC),
            "updated_by": user_id,
        }
        if language:
            values["language"] = language
        stmt = (
            update(ScriptORM)
            .where(ScriptORM.id == script_id, ScriptORM.version == expected_version)
            .values(**values)
            .returning(*_SCRIPT_COLUMNS)
            .execution_options(synchronize_session=False)
        )
        row = self._session.execute(stmt).first()
        return self._to_domain(row) if row else None

    @staticmethod
    def _to_domain(row: Any) -> ScriptDocument:
        return ScriptDocument(
            id=row.id,
            presenter_id=row.presenter_id,
            content=row.content or "",
            language=row.language,
            version=int(row.version),
            updated_at=row.updated_at,
            updated_by=row.updated_by,
        )


class ScriptHistoryRepo:
    """Journal en ajout seul des versions d'un script (aucune mise à jour, aucune suppression)."""

    def __init__(self, session: Session, inline_max_chars: int = 4000) -> None:
        """Construit le repo; `inline_max_chars` borne le contenu embarqué dans les listes."""
        self._session = session
        self._inline_max_chars = inline_max_chars

    def append(
        self,
        script_id: str,
        version: int | None,
        content: str,
        source: HistorySource,
        meta: dict[str, Any],
        user_id: str,
    ) -> bool:
        """Ajoute une entrée. Un doublon sur (script_id, version) est un no-op (retourne False).

        Une entrée sans version (copie pré-restauration) est toujours insérée.
        """
        values = {
            "script_id": script_id,
            "version": version,
            "content": content,
            "source": source.value,
            "meta": dict(meta),
            "created_at": datetime.now(UTC),
            "created_by": user_id,
        }
        if version is None:
            self._session.add(ScriptVersionORM(**values))
            self._session.flush()
            return True
        return insert_ignore(self._session, ScriptVersionORM, values, ("script_id", "version"))

    def get(self, script_id: str, entry_id: int) -> HistoryEntry | None:
        """Entrée complète, limitée au script donné."""
        if not 1 <= entry_id <= MAX_ENTRY_ID:
            return None
        row = self._session.execute(
            select(ScriptVersionORM).where(
                ScriptVersionORM.id == entry_id, ScriptVersionORM.script_id == script_id
            )
        ).scalar_one_or_none()
        return self._to_domain(row, full=True) if row else None

    def get_at_version(self, script_id: str, version: int) -> HistoryEntry | None:
        """Entrée complète occupant le numéro `version`, si elle existe."""
        row = self._session.execute(
            select(ScriptVersionORM).where(
                ScriptVersionORM.script_id == script_id, ScriptVersionORM.version == version
            )
        ).scalar_one_or_none()
        return self._to_domain(row, full=True) if row else None

    def list_recent(self, script_id: str, limit: int) -> list[HistoryEntry]:
        """Entrées les plus récentes d'abord (ordre d'insertion)."""
        rows = (
            self._session.execute(
                select(ScriptVersionORM)
                .where(ScriptVersionORM.script_id == script_id)
                .order_by(ScriptVersionORM.id.desc())
                .limit(limit)
            )
            .scalars()
            .all()
        )
        return [self._to_domain(r, full=False) for r in rows]

    def _to_domain(self, row: ScriptVersionORM, full: bool) -> HistoryEntry:
        content = row.content or ""
        embed = full or len(content) <= self._inline_max_chars
        return HistoryEntry(
            id=int(row.id),
            script_id=row.script_id,
            version=row.version,
            source=HistorySource(row.source),
            meta=dict(row.meta or {}),
            content=content if embed else None,
            content_length=len(content),
            preview=content[:200],
            created_at=row.created_at,
            created_by=row.created_by,
        )
