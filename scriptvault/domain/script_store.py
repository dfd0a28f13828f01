"""
Magasin de scripts versionnés avec concurrence optimiste.

Responsabilités du module
-------------------------
- Provisionner paresseusement le script d'un présentateur (`ensure`).
- Accepter les éditions client contrôlées par numéro de version (`save`).
- Tenir l'historique en ajout seul: points de contrôle, liste, lecture, restauration.
- Appliquer les réécritures IA (`transform`, `generate`) sans jamais laisser de trace en cas
  d'échec de génération.

Garanties
---------
- Chaque mutation acceptée incrémente la version d'exactement 1, via une mise à jour conditionnelle
  `WHERE version = :vue` évaluée atomiquement par la base (un seul gagnant par version).
- Aucune nouvelle tentative automatique: un conflit est remonté tel quel à l'appelant.
- L'appel au service de génération a lieu hors de toute session base de données.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, NoReturn

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from scriptvault.app.metrics import (
    SCRIPT_CONFLICTS,
    SCRIPT_GENERATION_FAILURES,
    SCRIPT_WRITES,
)
from scriptvault.domain.entities import HistoryEntry, HistorySource, Presenter, ScriptDocument
from scriptvault.domain.errors import (
    ContentTooShort,
    GenerationFailed,
    NotFound,
    StorageError,
    ValidationFailed,
    VersionConflict,
)
from scriptvault.domain.prompts import TRANSFORM_PRESETS, build_transform_instruction, merge_context
from scriptvault.domain.rewriter import ScriptRewriter
from scriptvault.infra.repo.db import session_scope
from scriptvault.infra.repo.presenter_repo import PresenterRepo
from scriptvault.infra.repo.script_repo import ScriptHistoryRepo, ScriptRepo

log = structlog.get_logger(__name__)

_LANGUAGE_RE = re.compile(r"^[a-z]{2,3}(-[a-z0-9]{2,8})?$")

_WRITE_EVENTS = {
    "save": "script_saved",
    "restore": "script_restored",
    "transform": "script_transformed",
    "generate": "script_generated",
}


class ScriptStore:
    """Script courant + historique immuable d'un présentateur."""

    def __init__(
        self,
        session_factory: sessionmaker,
        rewriter: ScriptRewriter,
        default_language: str = "ro",
        history_default_limit: int = 30,
        history_max_limit: int = 200,
        inline_max_chars: int = 4000,
    ) -> None:
        """Construit le magasin à partir d'une factory de sessions et d'un réécrivain IA."""
        self._factory = session_factory
        self.rewriter = rewriter
        self.default_language = default_language
        self.history_default_limit = history_default_limit
        self.history_max_limit = history_max_limit
        self.inline_max_chars = inline_max_chars

    # -------------------- Présentateurs --------------------

    def create_presenter(
        self, user_id: str, name: str, context: dict[str, Any] | None = None
    ) -> Presenter:
        """Crée un présentateur appartenant à `user_id` (sans script: provisionné au 1er accès)."""
        name = (name or "").strip()
        if not name:
            raise ValidationFailed("name required")
        with self._unit_of_work() as session:
            presenter = PresenterRepo(session).create(user_id, name, context)
        log.info("presenter_created", presenter_id=presenter.id)
        return presenter

    def get_presenter(self, presenter_id: str, user_id: str) -> Presenter:
        """Présentateur possédé par `user_id`, sinon `NotFound`."""
        with self._unit_of_work() as session:
            return self._owned_presenter(session, presenter_id, user_id)

    def update_presenter_context(
        self, presenter_id: str, user_id: str, context: dict[str, Any]
    ) -> Presenter:
        """Fusionne `context` sur le contexte du présentateur (les clés fournies l'emportent).

        Le contexte alimente `generate`; un présentateur d'un autre utilisateur est introuvable.
        """
        if not isinstance(context, dict):
            raise ValidationFailed("context must be an object")
        with self._unit_of_work() as session:
            self._owned_presenter(session, presenter_id, user_id)
            presenter = PresenterRepo(session).update_context(presenter_id, context)
            if presenter is None:
                raise NotFound("presenter not found")
        log.info("presenter_context_updated", presenter_id=presenter_id, keys=sorted(context))
        return presenter

    # -------------------- Lecture / provisionnement --------------------

    def ensure(self, presenter_id: str, user_id: str) -> ScriptDocument:
        """Retourne le script du présentateur, en le créant (vide, version 1) au premier accès.

        Idempotent: un créateur concurrent perdant relit la ligne du gagnant.
        """
        with self._unit_of_work() as session:
            self._owned_presenter(session, presenter_id, user_id)
            scripts = ScriptRepo(session)
            doc = scripts.get_by_presenter(presenter_id)
            if doc is not None:
                return doc
            created = scripts.create_if_absent(presenter_id, self.default_language, user_id)
            doc = scripts.get_by_presenter(presenter_id)
            if doc is None:
                raise StorageError("script row missing after provisioning")
            if created:
                self._history(session).append(
                    doc.id,
                    doc.version,
                    doc.content,
                    HistorySource.BOOTSTRAP,
                    {"reason": "bootstrap"},
                    user_id,
                )
        if created:
            log.info("script_bootstrapped", script_id=doc.id, presenter_id=presenter_id)
        return doc

    def list_history(
        self, presenter_id: str, user_id: str, limit: int | None = None
    ) -> list[HistoryEntry]:
        """Entrées les plus récentes d'abord, bornées par `limit` (valeur par défaut et plafond)."""
        effective = self._clamp_limit(limit)
        with self._unit_of_work() as session:
            self._owned_presenter(session, presenter_id, user_id)
            doc = ScriptRepo(session).get_by_presenter(presenter_id)
            if doc is None:
                return []
            return self._history(session).list_recent(doc.id, effective)

    def get_history_entry(self, presenter_id: str, user_id: str, entry_id: int) -> HistoryEntry:
        """Entrée complète; une entrée d'un autre script est introuvable."""
        with self._unit_of_work() as session:
            _, doc = self._load(session, presenter_id, user_id)
            entry = self._history(session).get(doc.id, entry_id)
        if entry is None:
            raise NotFound("history entry not found")
        return entry

    # -------------------- Écritures --------------------

    def save(
        self,
        presenter_id: str,
        user_id: str,
        content: str,
        expected_version: int | None = None,
        force: bool = False,
    ) -> ScriptDocument:
        """Remplace le contenu si la version attendue est toujours la version stockée.

        Lève `VersionConflict` (contenu et version serveur) sinon. `force` contourne le contrôle
        de la version attendue.
        """
        if not isinstance(content, str):
            raise ValidationFailed("content must be a string")
        if expected_version is not None and (
            isinstance(expected_version, bool) or not isinstance(expected_version, int)
        ):
            raise ValidationFailed("version must be a number")

        with self._unit_of_work() as session:
            _, doc = self._load(session, presenter_id, user_id)
            if not force and expected_version is not None and expected_version != doc.version:
                self._conflict("save", doc, expected_version)
            seen = doc.version if force or expected_version is None else expected_version
            scripts = ScriptRepo(session)
            updated = scripts.compare_and_set(doc.id, seen, content, user_id)
            if updated is None:
                self._conflict("save", scripts.get_by_presenter(presenter_id) or doc, seen)
            source = HistorySource.MANUAL_SNAPSHOT if force else HistorySource.AUTOSAVE
            self._history(session).append(
                updated.id,
                updated.version,
                updated.content,
                source,
                {"reason": "force_save" if force else "save"},
                user_id,
            )
        self._written("save", source, updated)
        return updated

    def snapshot(self, presenter_id: str, user_id: str) -> HistoryEntry:
        """Point de contrôle manuel du contenu courant, sans changer le script.

        Si une entrée occupe déjà la version courante, elle est retournée telle quelle.
        """
        with self._unit_of_work() as session:
            _, doc = self._load(session, presenter_id, user_id)
            history = self._history(session)
            history.append(
                doc.id,
                doc.version,
                doc.content,
                HistorySource.MANUAL_SNAPSHOT,
                {"reason": "manual"},
                user_id,
            )
            entry = history.get_at_version(doc.id, doc.version)
        if entry is None:
            raise StorageError("snapshot row missing after insert")
        log.info("script_snapshot", script_id=doc.id, version=doc.version, entry_id=entry.id)
        return entry

    def restore(self, presenter_id: str, user_id: str, entry_id: int) -> ScriptDocument:
        """Restaure le contenu d'une entrée d'historique sous une nouvelle version.

        Seule l'entrée `restore` réclame le nouveau numéro; la copie de sécurité du contenu écrasé
        est conservée sans numéro de version (`pre-restore`). Aucune entrée existante n'est modifiée.
        """
        with self._unit_of_work() as session:
            _, doc = self._load(session, presenter_id, user_id)
            history = self._history(session)
            target = history.get(doc.id, entry_id)
            if target is None:
                raise NotFound("history entry not found")

            next_version = doc.version + 1
            history.append(
                doc.id,
                None,
                doc.content,
                HistorySource.PRE_RESTORE,
                {
                    "reason": "pre_restore_snapshot",
                    "from_entry_id": target.id,
                    "from_version": target.version,
                    "previous_version": doc.version,
                },
                user_id,
            )
            scripts = ScriptRepo(session)
            updated = scripts.compare_and_set(doc.id, doc.version, target.content, user_id)
            if updated is None:
                self._conflict("restore", scripts.get_by_presenter(presenter_id) or doc, doc.version)
            if updated.version != next_version:
                raise StorageError("unexpected version after restore")
            history.append(
                updated.id,
                updated.version,
                updated.content,
                HistorySource.RESTORE,
                {"from_entry_id": target.id, "from_version": target.version},
                user_id,
            )
        self._written("restore", HistorySource.RESTORE, updated, from_entry_id=target.id)
        return updated

    def transform(
        self,
        presenter_id: str,
        user_id: str,
        instruction: str | None = None,
        preset: str | None = None,
        to_language: str | None = None,
    ) -> ScriptDocument:
        """Réécrit le script par IA selon une instruction libre et/ou un preset.

        Le script reste strictement inchangé si la génération échoue (`GenerationFailed`) ou si la
        sortie est trop courte (`ContentTooShort`).
        """
        instruction = (instruction or "").strip()
        if preset is not None and preset not in TRANSFORM_PRESETS:
            raise ValidationFailed(f"unknown preset: {preset}")
        if not instruction and preset is None:
            raise ValidationFailed("instruction required")
        target_language = None
        if preset == "translate":
            target_language = self._validate_language(to_language)
        elif to_language is not None:
            raise ValidationFailed("to_language only applies to the translate preset")

        doc = self._pre_snapshot(presenter_id, user_id, "transform")[1]
        if preset is not None:
            base = build_transform_instruction(preset, doc.language, target_language)
            effective = f"{base} {instruction}".strip()
        else:
            effective = instruction

        new_text = self._rewrite("transform", lambda: self.rewriter.rewrite(doc.content, effective))
        meta: dict[str, Any] = {"reason": "transform", "phase": "post", "instruction": effective}
        if preset is not None:
            meta["preset"] = preset
        return self._commit_generated(
            "transform",
            presenter_id,
            user_id,
            doc,
            new_text,
            HistorySource.TRANSFORMED,
            meta,
            language=target_language,
        )

    def generate(
        self,
        presenter_id: str,
        user_id: str,
        draft: str | None = None,
        language: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> ScriptDocument:
        """Génère un nouveau script depuis le contexte du présentateur et le brouillon.

        `language="auto"` (ou absent) conserve la langue du script. Mêmes garanties d'échec que
        `transform`.
        """
        auto = language is None or language.strip().lower() == "auto"
        requested = None if auto else self._validate_language(language)
        presenter, doc = self._pre_snapshot(presenter_id, user_id, "generate")
        lang = requested or doc.language or self.default_language
        base = draft if draft and draft.strip() else doc.content
        ctx = merge_context(presenter.context, context)

        new_text = self._rewrite("generate", lambda: self.rewriter.generate(base, lang, ctx))
        return self._commit_generated(
            "generate",
            presenter_id,
            user_id,
            doc,
            new_text,
            HistorySource.GENERATED,
            {"reason": "generate", "phase": "post", "language": lang},
            language=lang,
        )

    # -------------------- Helpers internes --------------------

    @contextmanager
    def _unit_of_work(self) -> Iterator[Session]:
        """Session transactionnelle; les erreurs SQLAlchemy deviennent `StorageError`."""
        try:
            with session_scope(self._factory) as session:
                yield session
        except SQLAlchemyError as exc:
            log.error("storage_error", error=type(exc).__name__, exc_info=True)
            raise StorageError("storage failure") from exc

    def _history(self, session: Session) -> ScriptHistoryRepo:
        return ScriptHistoryRepo(session, inline_max_chars=self.inline_max_chars)

    @staticmethod
    def _owned_presenter(session: Session, presenter_id: str, user_id: str) -> Presenter:
        presenter = PresenterRepo(session).get_owned(presenter_id, user_id)
        if presenter is None:
            raise NotFound("presenter not found")
        return presenter

    def _load(
        self, session: Session, presenter_id: str, user_id: str
    ) -> tuple[Presenter, ScriptDocument]:
        presenter = self._owned_presenter(session, presenter_id, user_id)
        doc = ScriptRepo(session).get_by_presenter(presenter_id)
        if doc is None:
            raise NotFound("script not found")
        return presenter, doc

    def _clamp_limit(self, limit: int | None) -> int:
        if limit is None:
            return self.history_default_limit
        return min(max(int(limit), 1), self.history_max_limit)

    @staticmethod
    def _validate_language(tag: str | None) -> str:
        t = (tag or "").strip().lower()
        if not _LANGUAGE_RE.match(t):
            raise ValidationFailed("language must be a short language tag")
        return t

    @staticmethod
    def _conflict(op: str, current: ScriptDocument, seen: int) -> NoReturn:
        SCRIPT_CONFLICTS.labels(op=op).inc()
        log.info(
            "script_conflict",
            op=op,
            script_id=current.id,
            expected_version=seen,
            server_version=current.version,
        )
        raise VersionConflict(current.content, current.version)

    @staticmethod
    def _written(
        op: str, source: HistorySource, doc: ScriptDocument, **extra: Any
    ) -> None:
        SCRIPT_WRITES.labels(op=op, source=source.value).inc()
        log.info(
            _WRITE_EVENTS[op],
            script_id=doc.id,
            version=doc.version,
            source=source.value,
            chars=len(doc.content),
            **extra,
        )

    def _pre_snapshot(
        self, presenter_id: str, user_id: str, reason: str
    ) -> tuple[Presenter, ScriptDocument]:
        """Lit le script et consigne (sans doublon) l'état courant avant une réécriture IA."""
        with self._unit_of_work() as session:
            presenter, doc = self._load(session, presenter_id, user_id)
            self._history(session).append(
                doc.id,
                doc.version,
                doc.content,
                HistorySource.MANUAL_SNAPSHOT,
                {"reason": reason, "phase": "pre"},
                user_id,
            )
        return presenter, doc

    @staticmethod
    def _rewrite(op: str, call: Callable[[], str]) -> str:
        try:
            return call()
        except ContentTooShort:
            SCRIPT_GENERATION_FAILURES.labels(op=op, reason="too_short").inc()
            raise
        except GenerationFailed:
            SCRIPT_GENERATION_FAILURES.labels(op=op, reason="generation_failed").inc()
            raise

    def _commit_generated(
        self,
        op: str,
        presenter_id: str,
        user_id: str,
        seen: ScriptDocument,
        new_text: str,
        source: HistorySource,
        meta: dict[str, Any],
        language: str | None = None,
    ) -> ScriptDocument:
        """Écrit le texte généré à la version lue avant la génération, puis l'entrée `post`."""
        with self._unit_of_work() as session:
            scripts = ScriptRepo(session)
            updated = scripts.compare_and_set(
                seen.id, seen.version, new_text, user_id, language=language
            )
            if updated is None:
                self._conflict(op, scripts.get_by_presenter(presenter_id) or seen, seen.version)
            self._history(session).append(
                updated.id, updated.version, updated.content, source, meta, user_id
            )
        self._written(op, source, updated)
        return updated
