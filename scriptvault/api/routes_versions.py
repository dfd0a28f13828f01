"""Routes de l'historique des versions: liste, point de contrôle, lecture et restauration."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Query

from scriptvault.api.deps import get_current_user, get_store
from scriptvault.domain.auth import TokenData
from scriptvault.domain.script_store import ScriptStore
from scriptvault.infra.repo.script_repo import MAX_ENTRY_ID

router = APIRouter(prefix="/presenters/{presenter_id}/versions", tags=["versions"])
_current_user_dep = Depends(get_current_user)
_store_dep = Depends(get_store)
_entry_id_path = Path(ge=1, le=MAX_ENTRY_ID)


@router.get("")
def list_versions(
    presenter_id: str,
    limit: int | None = Query(None),
    user: TokenData = _current_user_dep,
    store: ScriptStore = _store_dep,
):
    """Entrées les plus récentes d'abord; les contenus volumineux sont résumés."""
    entries = store.list_history(presenter_id, user.sub, limit=limit)
    return {"versions": [e.to_dict() for e in entries]}


@router.post("")
def create_snapshot(
    presenter_id: str,
    user: TokenData = _current_user_dep,
    store: ScriptStore = _store_dep,
):
    """Point de contrôle manuel de la version courante."""
    store.ensure(presenter_id, user.sub)
    entry = store.snapshot(presenter_id, user.sub)
    return {"version": entry.to_dict()}


@router.get("/{entry_id}")
def get_version(
    presenter_id: str,
    entry_id: int = _entry_id_path,
    user: TokenData = _current_user_dep,
    store: ScriptStore = _store_dep,
):
    """Entrée d'historique avec son contenu complet."""
    entry = store.get_history_entry(presenter_id, user.sub, entry_id)
    return {"version": entry.to_dict()}


@router.post("/{entry_id}/restore")
def restore_version(
    presenter_id: str,
    entry_id: int = _entry_id_path,
    user: TokenData = _current_user_dep,
    store: ScriptStore = _store_dep,
):
    """Restaure une entrée comme nouvelle version du script."""
    doc = store.restore(presenter_id, user.sub, entry_id)
    return {"script": doc.to_dict()}
