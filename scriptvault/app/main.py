"""
Application principale FastAPI.

Ce module assemble les composants du service de scripts versionnés : logging, middlewares,
gestion d'erreurs, routes et métriques.

Responsabilités du module:
- Initialiser le logging structuré
- Construire l'application FastAPI avec son titre (jamais en mode debug: l'enveloppe d'erreur reste JSON)
- Ajouter les middlewares (request id, timing, prometheus)
- Installer les handlers d'erreurs (enveloppe standard)
- Monter les routers (santé, présentateurs, script, versions, métriques)
"""

from __future__ import annotations

from fastapi import FastAPI

from scriptvault.api.routes_health import router as health_router
from scriptvault.api.routes_presenters import router as presenters_router
from scriptvault.api.routes_script import router as script_router
from scriptvault.api.routes_versions import router as versions_router
from scriptvault.apigw.errors import install_error_handlers
from scriptvault.app.metrics import PrometheusMiddleware, metrics_router
from scriptvault.core.container import container
from scriptvault.core.logging import setup_logging
from scriptvault.middlewares.request_id import RequestIDMiddleware
from scriptvault.middlewares.timing import TimingMiddleware


def create_app() -> FastAPI:
    """
    Construit et retourne l'application FastAPI prête à l'usage.

    Le dernier middleware ajouté est le plus externe: l'identifiant de requête est donc lié au
    contexte de logs avant la mesure de durée et les métriques.
    """
    settings = container.settings
    setup_logging(json_logs=settings.LOG_JSON)
    app = FastAPI(title=settings.APP_NAME)
    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(TimingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    install_error_handlers(app)
    app.include_router(health_router)
    app.include_router(presenters_router)
    app.include_router(script_router)
    app.include_router(versions_router)
    app.include_router(metrics_router)
    return app


app = create_app()
