"""
Stockage durable du registre : un blob texte par clé.

Le registre n'a besoin que de trois opérations (lire, écraser, supprimer) ;
toute implémentation exposant ces méthodes peut lui être injectée.
"""

import logging
from typing import Callable, Dict, Optional

from sqlalchemy.orm import Session

from casiers.models.snapshot import Snapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Interface du stockage clé → snapshot."""

    def load(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def save(self, key: str, data: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemorySnapshotStore(SnapshotStore):
    """Stockage en mémoire (tests, usage embarqué)."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def load(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def save(self, key: str, data: str) -> None:
        self.data[key] = data

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class SqlSnapshotStore(SnapshotStore):
    """
    Stockage dans la table `snapshots`.
    Une session courte par appel : ouverture, lecture/écriture, fermeture.
    Les erreurs SQLAlchemy remontent à l'appelant (le registre les journalise).
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def load(self, key: str) -> Optional[str]:
        db = self.session_factory()
        try:
            snapshot = db.get(Snapshot, key)
            return snapshot.data if snapshot else None
        finally:
            db.close()

    def save(self, key: str, data: str) -> None:
        db = self.session_factory()
        try:
            snapshot = db.get(Snapshot, key)
            if snapshot is None:
                db.add(Snapshot(key=key, data=data))
            else:
                snapshot.data = data
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def delete(self, key: str) -> None:
        db = self.session_factory()
        try:
            snapshot = db.get(Snapshot, key)
            if snapshot is not None:
                db.delete(snapshot)
                db.commit()
        finally:
            db.close()
