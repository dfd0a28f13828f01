"""Tests du réécrivain IA: validation de la sortie et traduction des erreurs."""

from __future__ import annotations

import pytest

from scriptvault.domain.errors import ContentTooShort, GenerationFailed
from scriptvault.domain.rewriter import ScriptRewriter, normalize_whitespace, strip_fences
from scriptvault.infra.llm.base import LLMError
from tests.fakes import DEFAULT_OUTPUT, FakeLLM

MIN_CHARS = 80


def test_normalize_whitespace() -> None:
    """Les suites d'espaces et de retours à la ligne deviennent un espace."""
    assert normalize_whitespace("  a \n\n b\tc  ") == "a b c"
    assert normalize_whitespace("") == ""


def test_strip_fences() -> None:
    """Les clôtures markdown (avec ou sans langue) sont retirées."""
    assert strip_fences("```\nhello\n```") == "hello"
    assert strip_fences("```text\nhello world\n```") == "hello world"
    assert strip_fences("plain") == "plain"


def test_rewrite_returns_stripped_text() -> None:
    """Une sortie valide est retournée sans espaces de bord."""
    rewriter = ScriptRewriter(FakeLLM([f"  {DEFAULT_OUTPUT}\n"]), min_chars=MIN_CHARS)
    assert rewriter.rewrite("old", "improve") == DEFAULT_OUTPUT


def test_too_short_counts_normalized_characters() -> None:
    """La longueur est mesurée après normalisation des espaces."""
    padded = "word " + " " * 200 + "end"
    rewriter = ScriptRewriter(FakeLLM([padded]), min_chars=MIN_CHARS)
    with pytest.raises(ContentTooShort) as exc_info:
        rewriter.rewrite("old", "improve")
    assert exc_info.value.got_chars == len("word end")
    assert exc_info.value.details["preview"] == "word end"


def test_empty_output_is_generation_failed() -> None:
    """Une sortie vide ou composée d'espaces est un échec de génération."""
    rewriter = ScriptRewriter(FakeLLM(["   "]), min_chars=MIN_CHARS)
    with pytest.raises(GenerationFailed):
        rewriter.rewrite("old", "improve")


@pytest.mark.parametrize("error", [LLMError("timeout"), ValueError("bad payload")])
def test_generator_errors_become_generation_failed(error: Exception) -> None:
    """Erreur du client LLM ou exception inattendue: GenerationFailed."""
    rewriter = ScriptRewriter(FakeLLM(error=error), min_chars=MIN_CHARS)
    with pytest.raises(GenerationFailed):
        rewriter.generate("draft", "ro", {"tone": "premium"})
