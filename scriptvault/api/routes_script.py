"""Routes du script courant: lecture (avec provisionnement), édition et réécritures IA.

Un conflit de version renvoie 409 `CONFLICT` avec `details.server_content` et
`details.server_version` pour permettre au client de fusionner.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from scriptvault.api.deps import get_current_user, get_store
from scriptvault.api.schemas import GeneratePayload, SavePayload, TransformPayload
from scriptvault.domain.auth import TokenData
from scriptvault.domain.script_store import ScriptStore

router = APIRouter(prefix="/presenters/{presenter_id}/script", tags=["script"])
_current_user_dep = Depends(get_current_user)
_store_dep = Depends(get_store)


@router.get("")
def get_script(
    presenter_id: str,
    user: TokenData = _current_user_dep,
    store: ScriptStore = _store_dep,
):
    """Script courant, créé vide en version 1 au premier accès."""
    doc = store.ensure(presenter_id, user.sub)
    return {"script": doc.to_dict()}


@router.patch("")
def save_script(
    presenter_id: str,
    payload: SavePayload,
    user: TokenData = _current_user_dep,
    store: ScriptStore = _store_dep,
):
    """Enregistre une édition client contrôlée par version."""
    store.ensure(presenter_id, user.sub)
    doc = store.save(
        presenter_id,
        user.sub,
        payload.content,
        expected_version=payload.version,
        force=payload.force,
    )
    return {"script": doc.to_dict()}


@router.post("/transform")
def transform_script(
    presenter_id: str,
    payload: TransformPayload,
    user: TokenData = _current_user_dep,
    store: ScriptStore = _store_dep,
):
    """Réécrit le script selon une instruction ou un preset."""
    store.ensure(presenter_id, user.sub)
    doc = store.transform(
        presenter_id,
        user.sub,
        instruction=payload.instruction,
        preset=payload.preset,
        to_language=payload.to_language,
    )
    return {"script": doc.to_dict()}


@router.post("/generate")
def generate_script(
    presenter_id: str,
    payload: GeneratePayload,
    user: TokenData = _current_user_dep,
    store: ScriptStore = _store_dep,
):
    """Génère un nouveau script depuis le contexte du présentateur."""
    store.ensure(presenter_id, user.sub)
    doc = store.generate(
        presenter_id,
        user.sub,
        draft=payload.content,
        language=payload.language,
        context=payload.context,
    )
    return {"script": doc.to_dict()}
