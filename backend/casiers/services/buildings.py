"""
Plages de numéros de casiers par bâtiment et initialisation du registre.

Les plages de "Bâtiment C" et "Bâtiment D - Petit Couloir" se chevauchent
(1-50) : un numéro déjà présent n'est jamais recréé, les casiers 1-50
restent donc rattachés au premier bâtiment initialisé.
"""

import logging
from typing import Dict, List, NamedTuple

from casiers.registry import LockerRegistry
from casiers.schemas.registry import Locker, LockerStatus

logger = logging.getLogger(__name__)


class BuildingRange(NamedTuple):
    start: int
    end: int  # inclus


BUILDINGS: Dict[str, BuildingRange] = {
    "Bâtiment C": BuildingRange(1, 50),
    "Bâtiment D - Petit Couloir": BuildingRange(1, 78),
    "Bâtiment D - Préau Classes": BuildingRange(79, 276),
    "Bâtiment D - Préau WC Garçons": BuildingRange(277, 348),
    "Bâtiment D - Préau WC Filles": BuildingRange(349, 420),
    "Bâtiment D - Grand Couloir Gauche": BuildingRange(421, 620),
    "Bâtiment D - Grand Couloir Droite": BuildingRange(621, 704),
}


def building_lockers(building: str, bounds: BuildingRange) -> List[Locker]:
    """Casiers libres couvrant la plage [start, end] d'un bâtiment."""
    return [
        Locker(id=number, building=building, status=LockerStatus.FREE)
        for number in range(bounds.start, bounds.end + 1)
    ]


def seed_lockers(registry: LockerRegistry, buildings: Dict[str, BuildingRange] = BUILDINGS) -> int:
    """
    Crée les casiers manquants pour chaque bâtiment, dans l'ordre de déclaration.
    Idempotent : un second appel n'ajoute rien. Retourne le nombre de casiers créés.
    """
    lockers = [
        locker
        for building, bounds in buildings.items()
        for locker in building_lockers(building, bounds)
    ]
    added = registry.add_lockers(lockers)
    if added:
        logger.info("Initialisation : %d casiers créés sur %d bâtiments", added, len(buildings))
    return added
