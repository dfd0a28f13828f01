"""SQLAlchemy models for persistence layer (presenters, scripts, script history)."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase


def utcnow() -> datetime:
    """Horodatage UTC courant (évalué à chaque insertion)."""
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


class PresenterORM(Base):
    """Modèle ORM pour les présentateurs (entités propriétaires des scripts)."""

    __tablename__ = "presenters"

    id = Column(String(36), primary_key=True)
    user_id = Column(String(64), nullable=False, index=True)
    name = Column(String(255), nullable=False, default="")
    context = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class ScriptORM(Base):
    """Modèle ORM du script courant: une ligne par présentateur."""

    __tablename__ = "scripts"

    id = Column(String(36), primary_key=True)
    presenter_id = Column(String(36), ForeignKey("presenters.id"), nullable=False)
    content = Column(Text, nullable=False, default="")
    language = Column(String(16), nullable=False)
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_by = Column(String(64), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_by = Column(String(64), nullable=True)

    __table_args__ = (UniqueConstraint("presenter_id", name="uq_scripts_presenter"),)


class ScriptVersionORM(Base):
    """Modèle ORM de l'historique des scripts (ajout seul).

    `version` est nullable: la copie de sécurité pré-restauration ne réclame aucun numéro.
    """

    __tablename__ = "script_versions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    script_id = Column(String(36), ForeignKey("scripts.id"), nullable=False, index=True)
    version = Column(Integer, nullable=True)
    content = Column(Text, nullable=False, default="")
    source = Column(String(32), nullable=False)
    meta = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_by = Column(String(64), nullable=True)

    __table_args__ = (
        UniqueConstraint("script_id", "version", name="uq_script_versions_script_version"),
    )
