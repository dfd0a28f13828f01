"""
Endpoint de santé pour vérifier la disponibilité de l'API et de la base.

Expose `/health` pour signaler l'état général de l'application et du stockage.
"""

import structlog
from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from scriptvault.core.container import container

router = APIRouter(tags=["health"])
log = structlog.get_logger(__name__)


@router.get("/health")
def health():
    """Vérifie la disponibilité de l'API et répond à un ping SQL."""
    try:
        with container.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        db = "ok"
    except SQLAlchemyError as exc:
        log.warning("health_db_unreachable", error=type(exc).__name__)
        db = "unreachable"
    return {
        "status": "ok" if db == "ok" else "degraded",
        "storage": container.storage_backend,
        "db": db,
        "llm_model": container.settings.OPENAI_MODEL,
    }
