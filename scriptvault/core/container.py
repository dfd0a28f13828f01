"""
Conteneur d'injection de dépendances et configuration application.

Instancie les composants centraux (settings, moteur SQL, LLM, magasin de scripts) et expose un
singleton `container` utilisé par le reste de l'application.
"""

from __future__ import annotations

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from scriptvault.core.settings import Settings, get_settings
from scriptvault.domain.rewriter import ScriptRewriter
from scriptvault.domain.script_store import ScriptStore
from scriptvault.infra.llm.base import LLM
from scriptvault.infra.llm.openai_client import OpenAILLM
from scriptvault.infra.repo.db import get_engine, get_session_factory
from scriptvault.infra.repo.models import Base


class Container:
    """Assemble les dépendances à partir des settings.

    `engine` et `llm` peuvent être injectés (tests) à la place des valeurs construites depuis
    la configuration.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        engine: Engine | None = None,
        llm: LLM | None = None,
    ) -> None:
        """Construit le conteneur et crée le schéma si la base est vide."""
        self.settings = settings or get_settings()
        self.engine = engine or get_engine(self.settings.DATABASE_URL, echo=self.settings.DB_ECHO)
        # alembic gère le schéma en production; create_all est idempotent
        Base.metadata.create_all(self.engine)
        self.session_factory: sessionmaker = get_session_factory(self.engine)
        self.llm = llm or OpenAILLM(
            api_key=self.settings.OPENAI_API_KEY,
            model=self.settings.OPENAI_MODEL,
            timeout_s=self.settings.LLM_TIMEOUT_S,
        )
        self.rewriter = ScriptRewriter(self.llm, min_chars=self.settings.MIN_GENERATED_CHARS)
        self.script_store = ScriptStore(
            self.session_factory,
            self.rewriter,
            default_language=self.settings.DEFAULT_LANGUAGE,
            history_default_limit=self.settings.HISTORY_DEFAULT_LIMIT,
            history_max_limit=self.settings.HISTORY_MAX_LIMIT,
            inline_max_chars=self.settings.HISTORY_INLINE_MAX_CHARS,
        )

    @property
    def storage_backend(self) -> str:
        """Nom du dialecte SQL utilisé (sqlite, postgresql...)."""
        return self.engine.dialect.name


container = Container()
