"""Construction des prompts de réécriture et de génération de script.

Les presets de transformation correspondent aux boutons de l'éditeur (plus court, plus direct,
premium, traduction, régénération). Les prompts de génération assemblent le contexte du
présentateur avec le brouillon courant.
"""

from __future__ import annotations

from typing import Any, Literal, get_args

TransformPreset = Literal["shorter", "aggressive", "premium", "translate", "regenerate"]
TRANSFORM_PRESETS: tuple[str, ...] = get_args(TransformPreset)

LANGUAGE_NAMES = {
    "en": "English",
    "ro": "Romanian",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "it": "Italian",
    "pt": "Portuguese",
    "nl": "Dutch",
    "sv": "Swedish",
    "no": "Norwegian",
    "da": "Danish",
    "fi": "Finnish",
    "pl": "Polish",
    "cs": "Czech",
    "hu": "Hungarian",
    "tr": "Turkish",
    "el": "Greek",
    "he": "Hebrew",
    "ar": "Arabic",
    "hi": "Hindi",
    "th": "Thai",
    "vi": "Vietnamese",
    "id": "Indonesian",
    "ms": "Malay",
    "ja": "Japanese",
    "ko": "Korean",
    "zh": "Chinese",
    "uk": "Ukrainian",
    "ru": "Russian",
    "bg": "Bulgarian",
    "sr": "Serbian",
    "hr": "Croatian",
}

CONTEXT_KEYS = ("tone", "visual", "location", "domain", "audience", "notes")
CONTEXT_DEFAULTS = {"tone": "premium", "visual": "apple-cinematic"}


def language_name(tag: str) -> str:
    """Nom anglais d'un code langue, ou le code tel quel s'il est inconnu."""
    t = (tag or "").strip().lower()
    return LANGUAGE_NAMES.get(t, t)


def editor_system_prompt() -> str:
    """Prompt système commun aux réécritures."""
    return (
        "You are iDive Script Editor.\n"
        "Return ONLY the final script text, no markdown fences, no explanations.\n"
        "Preserve speaker intent and factual claims.\n"
        "Keep it coherent and natural."
    )


def build_transform_instruction(
    preset: str, from_language: str, to_language: str | None = None
) -> str:
    """Instruction en langage naturel pour un preset de transformation."""
    src = language_name(from_language)
    if preset == "shorter":
        return f"Rewrite the script to be ~25% shorter while preserving meaning. Language: {src}."
    if preset == "aggressive":
        return (
            "Rewrite the script to be more aggressive/direct/sales-forward, but not rude. "
            f"Keep it believable. Language: {src}."
        )
    if preset == "premium":
        return (
            "Rewrite the script to sound premium/luxury/high-status. Avoid clichés. "
            f"Language: {src}."
        )
    if preset == "translate":
        dst = language_name(to_language or "")
        return f"Translate the script from {src} to {dst}. Keep tone and formatting."
    if preset == "regenerate":
        return (
            "Regenerate a fresh script based on the same intent, improving clarity and "
            f"persuasion. Language: {src}."
        )
    return f"Improve the script. Language: {src}."


def build_transform_messages(instruction: str, script: str) -> list[dict[str, str]]:
    """Messages chat pour appliquer une instruction au script courant."""
    return [
        {"role": "system", "content": editor_system_prompt()},
        {"role": "user", "content": f"{instruction}\n\nSCRIPT:\n{script}"},
    ]


def merge_context(
    presenter_context: dict[str, Any] | None, request_context: dict[str, Any] | None
) -> dict[str, str]:
    """Fusionne le contexte stocké et celui de la requête (la requête l'emporte)."""
    merged: dict[str, Any] = {**CONTEXT_DEFAULTS, **(presenter_context or {})}
    merged.update(request_context or {})
    return {k: str(merged.get(k) or "") for k in CONTEXT_KEYS}


def build_generation_messages(
    draft: str, language: str, context: dict[str, str]
) -> list[dict[str, str]]:
    """Messages chat pour générer un script parlé à partir du contexte présentateur."""
    system = (
        "You are a senior copywriter and voiceover director. "
        "Write natural, clear, premium, cinematic spoken marketing copy without clichés. "
        "Return ONLY the final script text."
    )
    user = "\n".join(
        [
            "You are writing a spoken script for a video presenter (avatar).",
            "Make it sound natural, confident, and premium, not like a generic ad.",
            "",
            "Hard rules:",
            f"- Output language MUST be: {language_name(language)} (tag: {language})",
            "- Length: 80-160 words (roughly 20-30 seconds spoken)",
            '- No bullet points, no headings, no emojis, no weird symbols (like "/" or "*")',
            "- Hook: max 2 sentences",
            "- CTA: exactly 1 sentence",
            "- Body: short spoken sentences, 1-3 lines per paragraph",
            "- Avoid clichés and filler",
            "",
            "Context:",
            f"- Location: {context.get('location', '')}",
            f"- Industry/Domain: {context.get('domain', '')}",
            f"- Audience: {context.get('audience', '')}",
            f"- Tone: {context.get('tone', '')}",
            f"- Visual vibe: {context.get('visual', '')}",
            f"- Notes: {context.get('notes', '')}",
            "",
            "Current draft:",
            draft,
        ]
    )
    return [
        {"role": "system", "content": system},
        {"role": "user", "content": user.strip()},
    ]
