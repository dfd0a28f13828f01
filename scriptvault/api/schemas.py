# Schémas Pydantic exposés par l'API (requêtes). Les champs inconnus sont refusés (422).

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PresenterCreate(BaseModel):
    """Création d'un présentateur.

    Champs:
    - name: str (nom affiché, non vide)
    - context: dict | None (tone, visual, location, domain, audience, notes)
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=200)
    context: dict[str, Any] | None = None


class PresenterContextUpdate(BaseModel):
    """Mise à jour partielle du contexte: les clés fournies remplacent celles déjà stockées."""

    model_config = ConfigDict(extra="forbid")

    context: dict[str, Any]


class SavePayload(BaseModel):
    """Édition client du script.

    Champs:
    - content: str (texte complet)
    - version: int | None (version sur laquelle l'édition a été faite)
    - force: bool (ignore le contrôle de version)
    """

    model_config = ConfigDict(extra="forbid", strict=True)

    content: str
    version: int | None = None
    force: bool = False


class TransformPayload(BaseModel):
    """Réécriture IA: instruction libre et/ou preset (`translate` exige `to_language`)."""

    model_config = ConfigDict(extra="forbid")

    instruction: str | None = None
    preset: str | None = None
    to_language: str | None = None


class GeneratePayload(BaseModel):
    """Génération IA depuis un brouillon (`content`) et le contexte du présentateur."""

    model_config = ConfigDict(extra="forbid")

    content: str | None = None
    language: str | None = None
    context: dict[str, Any] | None = None
