"""Émet un jeton d'accès de développement pour un utilisateur donné.

Usage:
  python -m scriptvault.scripts.mint_token --user-id u1 [--email u1@example.com]

Le jeton est signé avec `JWT_SECRET`; en production il est émis par le fournisseur d'identité.
"""

from __future__ import annotations

import argparse

from scriptvault.core.settings import get_settings
from scriptvault.domain.auth import create_access_token


def main() -> None:
    """Imprime un jeton Bearer dont la claim `sub` vaut `--user-id`."""
    parser = argparse.ArgumentParser()
    parser.add_argument("--user-id", required=True)
    parser.add_argument("--email", default=None)
    args = parser.parse_args()

    settings = get_settings()
    payload = {"sub": args.user_id}
    if args.email:
        payload["email"] = args.email
    token = create_access_token(
        secret=settings.JWT_SECRET,
        alg=settings.JWT_ALG,
        expires_min=settings.JWT_EXPIRES_MIN,
        payload=payload,
    )
    print(token)


if __name__ == "__main__":  # pragma: no cover - script entry
    main()
