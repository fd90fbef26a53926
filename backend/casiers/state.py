"""
Construction du registre des casiers et accès depuis les routes.

Le registre est créé une fois au démarrage (lifespan) et rangé dans
`app.state.registry` ; les routes le reçoivent via la dépendance get_registry,
que les tests remplacent par un registre en mémoire.
"""

from fastapi import Request

from casiers.config import settings
from casiers.database import SessionLocal
from casiers.registry import LockerRegistry
from casiers.services.buildings import seed_lockers
from casiers.storage import SqlSnapshotStore


def build_registry() -> LockerRegistry:
    """Registre persistant dans la table snapshots, initialisé avec les casiers des bâtiments."""
    registry = LockerRegistry(
        store=SqlSnapshotStore(SessionLocal),
        snapshot_key=settings.SNAPSHOT_KEY,
        history_limit=settings.HISTORY_LIMIT,
    )
    if settings.SEED_LOCKERS:
        seed_lockers(registry)
    return registry


def get_registry(request: Request) -> LockerRegistry:
    """Dépendance FastAPI: fournit le registre de l'application."""
    return request.app.state.registry
