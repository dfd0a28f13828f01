# mypy: ignore-errors
"""
Migration Alembic initiale: présentateurs, scripts courants et historique des versions.

`script_versions.version` est nullable (copie de sécurité pré-restauration); l'unicité
(script_id, version) garantit un seul enregistrement par numéro de version.
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20260301_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Crée les tables presenters, scripts et script_versions."""
    op.create_table(
        "presenters",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("context", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_presenters_user_id", "presenters", ["user_id"])

    op.create_table(
        "scripts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "presenter_id", sa.String(length=36), sa.ForeignKey("presenters.id"), nullable=False
        ),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("language", sa.String(length=16), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_by", sa.String(length=64), nullable=True),
        sa.UniqueConstraint("presenter_id", name="uq_scripts_presenter"),
    )

    op.create_table(
        "script_versions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("script_id", sa.String(length=36), sa.ForeignKey("scripts.id"), nullable=False),
        sa.Column("version", sa.Integer(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("source", sa.String(length=32), nullable=False),
        sa.Column("meta", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_by", sa.String(length=64), nullable=True),
        sa.UniqueConstraint("script_id", "version", name="uq_script_versions_script_version"),
    )
    op.create_index("ix_script_versions_script_id", "script_versions", ["script_id"])


def downgrade() -> None:
    """Supprime les tables dans l'ordre inverse des dépendances."""
    op.drop_index("ix_script_versions_script_id", table_name="script_versions")
    op.drop_table("script_versions")
    op.drop_table("scripts")
    op.drop_index("ix_presenters_user_id", table_name="presenters")
    op.drop_table("presenters")
