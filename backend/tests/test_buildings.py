"""
Tests de l'initialisation des casiers par plages de bâtiments.
"""

from casiers.schemas.registry import LockerStatus
from casiers.services.buildings import BUILDINGS, BuildingRange, building_lockers, seed_lockers


def test_building_lockers_bornes_incluses():
    lockers = building_lockers("Bâtiment C", BuildingRange(1, 50))
    assert [l.id for l in lockers][:2] == [1, 2]
    assert lockers[-1].id == 50
    assert all(l.status == LockerStatus.FREE for l in lockers)


def test_seed_idempotent(registry):
    assert seed_lockers(registry, {"Bâtiment C": BuildingRange(1, 50)}) == 50
    assert seed_lockers(registry, {"Bâtiment C": BuildingRange(1, 50)}) == 0
    assert len(registry.get_all_lockers()) == 50


def test_seed_plages_chevauchantes(registry):
    """Les numéros 1-50 restent au premier bâtiment déclaré."""
    seed_lockers(registry)

    assert len(registry.get_all_lockers()) == 704
    assert registry.get_locker(1).building == "Bâtiment C"
    assert registry.get_locker(51).building == "Bâtiment D - Petit Couloir"
    assert len(registry.get_lockers_by_building("Bâtiment D - Petit Couloir")) == 28
    assert len(registry.get_lockers_by_building("Bâtiment D - Grand Couloir Droite")) == 84


def test_seed_historique_plafonne(registry):
    seed_lockers(registry)
    history = registry.get_history()
    assert len(history) == 100
    assert history[0].details == "Casier 704 ajouté dans Bâtiment D - Grand Couloir Droite"


def test_seed_ne_touche_pas_les_casiers_existants(registry):
    seed_lockers(registry, {"Bâtiment C": BuildingRange(1, 3)})
    registry.update_locker_status(2, LockerStatus.MAINTENANCE)

    seed_lockers(registry, {"Bâtiment C": BuildingRange(1, 5)})

    assert registry.get_locker(2).status == LockerStatus.MAINTENANCE
    assert registry.get_locker(5) is not None


def test_buildings_declares():
    assert BUILDINGS["Bâtiment D - Préau Classes"] == BuildingRange(79, 276)
