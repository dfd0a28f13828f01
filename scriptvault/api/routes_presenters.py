"""Routes de gestion des présentateurs (entité propriétaire des scripts)."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from scriptvault.api.deps import get_current_user, get_store
from scriptvault.api.schemas import PresenterContextUpdate, PresenterCreate
from scriptvault.core.http_constants import HTTP_CREATED
from scriptvault.domain.auth import TokenData
from scriptvault.domain.entities import Presenter
from scriptvault.domain.script_store import ScriptStore

router = APIRouter(prefix="/presenters", tags=["presenters"])
_current_user_dep = Depends(get_current_user)
_store_dep = Depends(get_store)


def presenter_to_dict(p: Presenter) -> dict[str, Any]:
    """Représentation JSON d'un présentateur."""
    return {
        "id": p.id,
        "user_id": p.user_id,
        "name": p.name,
        "context": p.context,
        "created_at": p.created_at.isoformat() if p.created_at else None,
    }


@router.post("", status_code=HTTP_CREATED)
def create_presenter(
    payload: PresenterCreate,
    user: TokenData = _current_user_dep,
    store: ScriptStore = _store_dep,
):
    """Crée un présentateur pour l'utilisateur courant."""
    presenter = store.create_presenter(user.sub, payload.name, payload.context)
    return presenter_to_dict(presenter)


@router.get("/{presenter_id}")
def get_presenter(
    presenter_id: str,
    user: TokenData = _current_user_dep,
    store: ScriptStore = _store_dep,
):
    """Retourne un présentateur de l'utilisateur courant (404 sinon)."""
    return presenter_to_dict(store.get_presenter(presenter_id, user.sub))


@router.patch("/{presenter_id}/context")
def update_presenter_context(
    presenter_id: str,
    payload: PresenterContextUpdate,
    user: TokenData = _current_user_dep,
    store: ScriptStore = _store_dep,
):
    """Fusionne le contexte envoyé sur celui du présentateur (tone, location, audience...)."""
    presenter = store.update_presenter_context(presenter_id, user.sub, payload.context)
    return presenter_to_dict(presenter)
