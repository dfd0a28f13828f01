"""Réécriture assistée par IA du script courant.

`ScriptRewriter` est la frontière avec le service de génération de texte: il construit les prompts,
appelle le LLM et applique la politique de validation de la sortie (longueur minimale après
normalisation des espaces). Il ne touche jamais au stockage.
"""

from __future__ import annotations

import time
from typing import Any

import structlog

from scriptvault.app.metrics import LLM_LATENCY
from scriptvault.domain.errors import ContentTooShort, GenerationFailed
from scriptvault.domain.prompts import build_generation_messages, build_transform_messages
from scriptvault.infra.llm.base import LLM, LLMError

log = structlog.get_logger(__name__)


def normalize_whitespace(text: str) -> str:
    """Réduit toute suite d'espaces (retours à la ligne compris) à un seul espace."""
    return " ".join((text or "").split())


def strip_fences(text: str) -> str:
    """Retire d'éventuelles clôtures markdown autour d'une réponse."""
    t = (text or "").strip()
    if t.startswith("```") and t.endswith("```"):
        t = t[3:-3]
        first_nl = t.find("\n")
        # ligne de langage éventuelle (```text)
        if first_nl != -1 and " " not in t[:first_nl].strip():
            t = t[first_nl + 1 :]
    return t.strip()


class ScriptRewriter:
    """Applique une instruction ou un contexte au script via un LLM."""

    def __init__(self, llm: LLM, min_chars: int = 80) -> None:
        """Construit le réécrivain avec le LLM et le seuil minimal de caractères."""
        self.llm = llm
        self.min_chars = min_chars

    def rewrite(self, script: str, instruction: str) -> str:
        """Réécrit `script` selon `instruction` et retourne le texte validé."""
        messages = build_transform_messages(instruction, script)
        return self._run("transform", messages)

    def generate(self, draft: str, language: str, context: dict[str, str]) -> str:
        """Génère un script parlé depuis le brouillon et le contexte présentateur."""
        messages = build_generation_messages(draft, language, context)
        return self._run("generate", messages)

    def _run(self, op: str, messages: list[dict[str, Any]]) -> str:
        start = time.perf_counter()
        try:
            raw = self.llm.generate(messages)
        except LLMError as exc:
            log.warning("generation_failed", op=op, model=self.llm.model, error=str(exc))
            raise GenerationFailed("text generation failed") from exc
        except Exception as exc:
            log.error("generation_failed", op=op, model=self.llm.model, exc_info=True)
            raise GenerationFailed("text generation failed") from exc
        finally:
            LLM_LATENCY.labels(op=op).observe(time.perf_counter() - start)

        text = strip_fences(raw if isinstance(raw, str) else "")
        if not text:
            log.warning("generation_failed", op=op, model=self.llm.model, error="empty_output")
            raise GenerationFailed("text generation returned empty output")

        cleaned = normalize_whitespace(text)
        if len(cleaned) < self.min_chars:
            log.info(
                "generation_too_short", op=op, got_chars=len(cleaned), min_chars=self.min_chars
            )
            raise ContentTooShort(len(cleaned), self.min_chars, cleaned[:120])
        return text
