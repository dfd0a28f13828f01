# ============================================================
# Module : scriptvault/infra/repo/presenter_repo.py
# Objet  : Accès SQL pour les présentateurs.
# ============================================================

from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from ...domain.entities import Presenter
from .models import PresenterORM


class PresenterRepo:
    """CRUD minimal pour Presenter."""

    def __init__(self, session: Session) -> None:
        """Construit le repo avec une session (SQLAlchemy)."""
        self._session = session

    def create(self, user_id: str, name: str, context: dict[str, Any] | None = None) -> Presenter:
        """Crée un présentateur pour `user_id` et le retourne."""
        row = PresenterORM(
            id=uuid.uuid4().hex,
            user_id=user_id,
            name=name,
            context=dict(context or {}),
        )
        self._session.add(row)
        self._session.flush()
        return self._to_domain(row)

    def get(self, presenter_id: str) -> Presenter | None:
        """Retourne le présentateur ou None."""
        row = self._session.execute(
            select(PresenterORM).where(PresenterORM.id == presenter_id)
        ).scalar_one_or_none()
        return self._to_domain(row) if row else None

    def update_context(self, presenter_id: str, context: dict[str, Any]) -> Presenter | None:
        """Fusionne `context` sur le contexte stocké (clé à clé) et retourne le présentateur."""
        row = self._session.get(PresenterORM, presenter_id)
        if row is None:
            return None
        # nouvelle instance de dict: la colonne JSON n'est pas mutable-tracked
        row.context = {**(row.context or {}), **context}
        self._session.flush()
        return self._to_domain(row)

    def get_owned(self, presenter_id: str, user_id: str) -> Presenter | None:
        """Retourne le présentateur seulement si `user_id` en est propriétaire."""
        presenter = self.get(presenter_id)
        if presenter is None or presenter.user_id != user_id:
            return None
        return presenter

    @staticmethod
    def _to_domain(row: PresenterORM) -> Presenter:
        return Presenter(
            id=row.id,
            user_id=row.user_id,
            name=row.name,
            context=dict(row.context or {}),
            created_at=row.created_at,
        )
