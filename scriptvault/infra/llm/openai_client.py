"""
Client LLM basé sur l'API OpenAI.

Implémente l'interface LLM via chat.completions (SDK OpenAI). Toute erreur du SDK, tout dépassement
du timeout et toute réponse vide sont remontés sous forme de `LLMError`.
"""

from __future__ import annotations

from typing import Any, Literal, overload

from openai import OpenAI, OpenAIError

from scriptvault.infra.llm.base import LLM, LLMError


class OpenAILLM(LLM):
    """LLM basé sur OpenAI avec timeout borné par requête."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o-mini",
        timeout_s: float = 30.0,
        client: Any | None = None,
    ) -> None:
        """Initialize the OpenAILLM client.

        Sans clé ni client injecté, le client reste absent et chaque appel lève `LLMError`.
        """
        self.model = model
        self.timeout_s = timeout_s
        if client is not None:
            self.client = client
        elif api_key:
            self.client = OpenAI(api_key=api_key, timeout=timeout_s, max_retries=0)
        else:
            self.client = None

    @overload
    def generate(
        self,
        messages: list[dict[str, str]],
        *,
        with_usage: Literal[True],
        **kwargs: Any,
    ) -> tuple[str, dict[str, int]]: ...

    @overload
    def generate(
        self,
        messages: list[dict[str, str]],
        *,
        with_usage: Literal[False] = False,
        **kwargs: Any,
    ) -> str: ...

    def generate(
        self,
        messages: list[dict[str, str]],
        *,
        with_usage: bool = False,
        **kwargs: Any,
    ) -> str | tuple[str, dict[str, int]]:
        """
        Génère du texte (et éventuellement les métriques d'usage).

        - with_usage=False (défaut) -> str
        - with_usage=True -> (str, dict[str, int])
        """
        if self.client is None:
            raise LLMError("openai client not configured")
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                timeout=self.timeout_s,
                **kwargs,
            )
        except OpenAIError as exc:
            raise LLMError(f"openai call failed: {type(exc).__name__}") from exc

        choice = resp.choices[0] if getattr(resp, "choices", None) else None
        content = getattr(getattr(choice, "message", None), "content", None)
        if not content or not str(content).strip():
            raise LLMError("openai returned empty output")
        text = str(content).strip()
        if with_usage:
            return text, self._extract_usage_dict(resp)
        return text

    def _extract_usage_dict(self, resp: Any) -> dict[str, int]:
        """
        Extrait les infos d'usage depuis la réponse OpenAI.

        Toujours un dict.
        """
        usage = getattr(resp, "usage", None)
        if not usage:
            return {}
        return {
            "prompt_tokens": int(getattr(usage, "prompt_tokens", 0) or 0),
            "completion_tokens": int(getattr(usage, "completion_tokens", 0) or 0),
            "total_tokens": int(getattr(usage, "total_tokens", 0) or 0),
        }
