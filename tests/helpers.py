"""Constantes et constructeurs partagés par les tests."""

from __future__ import annotations

from scriptvault.domain.auth import create_access_token
from scriptvault.domain.rewriter import ScriptRewriter
from scriptvault.domain.script_store import ScriptStore
from scriptvault.infra.repo.db import get_session_factory
from scriptvault.infra.repo.models import Base

USER_ID = "user-1"
OTHER_USER_ID = "user-2"
MIN_CHARS = 80


def make_store(engine, llm, **kwargs) -> ScriptStore:
    """Construit un ScriptStore sur `engine` (schéma créé) avec le LLM donné."""
    Base.metadata.create_all(engine)
    return ScriptStore(
        get_session_factory(engine),
        ScriptRewriter(llm, min_chars=MIN_CHARS),
        **kwargs,
    )


def auth_headers(user_id: str = USER_ID) -> dict[str, str]:
    """En-tête Authorization signé avec la configuration de l'application."""
    from scriptvault.core.container import container

    token = create_access_token(
        secret=container.settings.JWT_SECRET,
        alg=container.settings.JWT_ALG,
        expires_min=5,
        payload={"sub": user_id},
    )
    return {"Authorization": f"Bearer {token}"}
