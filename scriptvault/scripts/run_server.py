"""
Lance le serveur HTTP du service de scripts (uvicorn).

Usage:
  python -m scriptvault.scripts.run_server --port 8000
"""

from __future__ import annotations

import argparse

import uvicorn

from scriptvault.core.settings import get_settings


def main() -> None:
    """Point d'entrée: hôte et port issus des settings, surchargeables en ligne de commande."""
    settings = get_settings()
    parser = argparse.ArgumentParser()
    parser.add_argument("--host", default=settings.APP_HOST)
    parser.add_argument("--port", type=int, default=settings.APP_PORT)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    uvicorn.run(
        "scriptvault.app.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        log_level="debug" if settings.APP_DEBUG else "info",
    )


if __name__ == "__main__":  # pragma: no cover - script entry
    main()
