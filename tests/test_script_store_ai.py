"""
Tests des réécritures IA du magasin de scripts (transform, generate).

Le LLM est remplacé par `FakeLLM`: sorties scriptées, erreurs, ou édition concurrente simulée pendant
la génération.
"""

from __future__ import annotations

import pytest

from scriptvault.domain.entities import HistorySource
from scriptvault.domain.errors import (
    ContentTooShort,
    GenerationFailed,
    ValidationFailed,
    VersionConflict,
)
from scriptvault.infra.llm.base import LLMError
from tests.fakes import DEFAULT_OUTPUT, FakeLLM
from tests.helpers import USER_ID, make_store

FIRST_VERSION = 1
SECOND_VERSION = 2
THIRD_VERSION = 3
LONG_ENOUGH = "This rewritten script is long enough to pass the minimum length check. " * 2


def _setup(engine, llm, text: str = "Original script"):
    store = make_store(engine, llm)
    presenter = store.create_presenter(USER_ID, "Ana", {"tone": "warm", "domain": "dental"})
    store.ensure(presenter.id, USER_ID)
    store.save(presenter.id, USER_ID, text, expected_version=FIRST_VERSION)
    return store, presenter


def test_transform_commits_new_version_with_post_entry(engine) -> None:
    """Une instruction valide produit une nouvelle version et une entrée transformed."""
    llm = FakeLLM([LONG_ENOUGH])
    store, presenter = _setup(engine, llm)

    doc = store.transform(presenter.id, USER_ID, instruction="Make it friendlier")
    assert doc.version == THIRD_VERSION
    assert doc.content == LONG_ENOUGH.strip()

    latest = store.list_history(presenter.id, USER_ID)[0]
    assert latest.source is HistorySource.TRANSFORMED
    assert latest.version == THIRD_VERSION
    assert latest.meta["phase"] == "post"
    assert latest.meta["instruction"] == "Make it friendlier"

    sent = llm.calls[0][-1]["content"]
    assert "Make it friendlier" in sent
    assert "Original script" in sent


def test_transform_failure_leaves_no_trace(engine) -> None:
    """Scénario: échec de génération, ni version ni entrée post."""
    llm = FakeLLM(error=LLMError("upstream down"))
    store, presenter = _setup(engine, llm)
    before = store.list_history(presenter.id, USER_ID)

    with pytest.raises(GenerationFailed):
        store.transform(presenter.id, USER_ID, instruction="shorter please")

    doc = store.ensure(presenter.id, USER_ID)
    assert doc.version == SECOND_VERSION
    assert doc.content == "Original script"
    after = store.list_history(presenter.id, USER_ID)
    assert [e.id for e in after] == [e.id for e in before]


def test_transform_unexpected_generator_error_is_generation_failed(engine) -> None:
    """Toute exception du générateur devient GenerationFailed."""
    llm = FakeLLM(error=RuntimeError("boom"))
    store, presenter = _setup(engine, llm)
    with pytest.raises(GenerationFailed):
        store.transform(presenter.id, USER_ID, instruction="anything")
    assert store.ensure(presenter.id, USER_ID).version == SECOND_VERSION


def test_transform_too_short_output_is_rejected(engine) -> None:
    """Scénario: sortie de 12 caractères, ContentTooShort et aucune mutation."""
    llm = FakeLLM(["Short reply."])
    store, presenter = _setup(engine, llm)

    with pytest.raises(ContentTooShort) as exc_info:
        store.transform(presenter.id, USER_ID, instruction="shorter")
    assert exc_info.value.got_chars == len("Short reply.")
    assert exc_info.value.details["min_chars"] == 80
    assert store.ensure(presenter.id, USER_ID).version == SECOND_VERSION


def test_transform_concurrent_edit_during_generation_conflicts(engine) -> None:
    """Une édition humaine pendant la génération gagne: la réécriture lève un conflit."""
    holder: dict = {}

    def human_edit(_messages) -> None:
        holder["store"].save(
            holder["presenter"].id, USER_ID, "Human edit", expected_version=SECOND_VERSION
        )

    llm = FakeLLM([LONG_ENOUGH], on_call=human_edit)
    store, presenter = _setup(engine, llm)
    holder.update(store=store, presenter=presenter)

    with pytest.raises(VersionConflict) as exc_info:
        store.transform(presenter.id, USER_ID, instruction="polish")
    assert exc_info.value.server_content == "Human edit"
    assert exc_info.value.server_version == THIRD_VERSION

    doc = store.ensure(presenter.id, USER_ID)
    assert doc.content == "Human edit"
    sources = {e.source for e in store.list_history(presenter.id, USER_ID)}
    assert HistorySource.TRANSFORMED not in sources


def test_transform_validation(engine) -> None:
    """Instruction vide sans preset, preset inconnu, traduction sans langue: ValidationFailed."""
    llm = FakeLLM()
    store, presenter = _setup(engine, llm)
    with pytest.raises(ValidationFailed):
        store.transform(presenter.id, USER_ID, instruction="   ")
    with pytest.raises(ValidationFailed):
        store.transform(presenter.id, USER_ID, preset="louder")
    with pytest.raises(ValidationFailed):
        store.transform(presenter.id, USER_ID, preset="translate")
    assert llm.calls == []


def test_transform_preset_translate_sets_language(engine) -> None:
    """Le preset translate change la langue du script."""
    llm = FakeLLM([LONG_ENOUGH])
    store, presenter = _setup(engine, llm)

    doc = store.transform(presenter.id, USER_ID, preset="translate", to_language="EN")
    assert doc.language == "en"
    latest = store.list_history(presenter.id, USER_ID)[0]
    assert latest.meta["preset"] == "translate"
    assert "Translate the script from Romanian to English" in llm.calls[0][-1]["content"]


def test_transform_preset_with_extra_instruction(engine) -> None:
    """Une instruction libre complète le preset."""
    llm = FakeLLM([LONG_ENOUGH])
    store, presenter = _setup(engine, llm)

    store.transform(presenter.id, USER_ID, instruction="Mention parking.", preset="shorter")
    instruction = store.list_history(presenter.id, USER_ID)[0].meta["instruction"]
    assert instruction.startswith("Rewrite the script to be ~25% shorter")
    assert instruction.endswith("Mention parking.")


def test_generate_uses_presenter_context_and_keeps_language(engine) -> None:
    """Generate fusionne le contexte et conserve la langue avec `auto`."""
    llm = FakeLLM([DEFAULT_OUTPUT])
    store, presenter = _setup(engine, llm)

    doc = store.generate(presenter.id, USER_ID, language="auto", context={"audience": "parents"})
    assert doc.version == THIRD_VERSION
    assert doc.language == "ro"
    assert doc.content == DEFAULT_OUTPUT

    prompt = llm.calls[0][-1]["content"]
    assert "- Tone: warm" in prompt
    assert "- Industry/Domain: dental" in prompt
    assert "- Audience: parents" in prompt
    assert "Original script" in prompt

    latest = store.list_history(presenter.id, USER_ID)[0]
    assert latest.source is HistorySource.GENERATED
    assert latest.meta["language"] == "ro"


def test_generate_with_draft_and_language(engine) -> None:
    """Un brouillon fourni remplace le contenu courant; la langue est enregistrée."""
    llm = FakeLLM([DEFAULT_OUTPUT])
    store, presenter = _setup(engine, llm)

    doc = store.generate(presenter.id, USER_ID, draft="New draft idea", language="fr")
    assert doc.language == "fr"
    prompt = llm.calls[0][-1]["content"]
    assert "New draft idea" in prompt
    assert "French" in prompt


def test_generate_rejects_invalid_language(engine) -> None:
    """Langue mal formée: ValidationFailed avant tout appel au LLM."""
    llm = FakeLLM()
    store, presenter = _setup(engine, llm)
    with pytest.raises(ValidationFailed):
        store.generate(presenter.id, USER_ID, language="not a language")
    assert llm.calls == []


def test_transform_rejects_language_outside_translate(engine) -> None:
    """`to_language` sans preset translate: ValidationFailed, script inchangé, LLM non appelé."""
    llm = FakeLLM([LONG_ENOUGH])
    store, presenter = _setup(engine, llm)
    with pytest.raises(ValidationFailed):
        store.transform(presenter.id, USER_ID, preset="shorter", to_language="en")
    with pytest.raises(ValidationFailed):
        store.transform(presenter.id, USER_ID, instruction="Shorter.", to_language="en")
    assert llm.calls == []
    assert store.ensure(presenter.id, USER_ID).version == SECOND_VERSION


def test_generate_reads_updated_presenter_context(engine) -> None:
    """Un contexte mis à jour après la création alimente la génération suivante."""
    llm = FakeLLM([DEFAULT_OUTPUT])
    store, presenter = _setup(engine, llm)
    store.update_presenter_context(presenter.id, USER_ID, {"tone": "playful", "location": "Brasov"})

    store.generate(presenter.id, USER_ID)
    prompt = llm.calls[0][-1]["content"]
    assert "- Tone: playful" in prompt
    assert "- Tone: warm" not in prompt
    assert "- Industry/Domain: dental" in prompt
    assert "Brasov" in prompt
