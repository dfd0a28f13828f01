"""Dépendances partagées pour les routes de l'API.

But du module
-------------
- Résoudre l'utilisateur courant depuis le jeton Bearer émis par le fournisseur d'identité.
- Fournir le magasin de scripts du conteneur; les tests le remplacent via
  `app.dependency_overrides[get_store]`.
"""

from fastapi import Header

from scriptvault.apigw.errors import unauthorized
from scriptvault.core.container import container
from scriptvault.domain.auth import TokenData, decode_token
from scriptvault.domain.script_store import ScriptStore


def get_current_user(authorization: str | None = Header(None)) -> TokenData:
    """Extrait et valide l'utilisateur courant à partir du token d'autorisation."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise unauthorized("missing_token")
    token = authorization.split(" ", 1)[1].strip()
    data = decode_token(token, container.settings.JWT_SECRET, container.settings.JWT_ALG)
    if data is None or not data.sub:
        raise unauthorized("invalid_token")
    return data


def get_store() -> ScriptStore:
    """Magasin de scripts de l'application."""
    return container.script_store
