"""
Router pour les casiers du registre : consultation, changement de statut,
statistiques par bâtiment et export CSV des attributions.
"""

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse

from casiers.registry import LockerRegistry
from casiers.schemas.registry import BuildingStats, Locker, LockerStatus, LockerStatusUpdate
from casiers.services.buildings import BUILDINGS
from casiers.state import get_registry

router = APIRouter(prefix="/api/v1", tags=["Casiers"])


@router.get("/buildings", summary="Lister les bâtiments et leurs plages")
def list_buildings():
    return [
        {"name": name, "start": bounds.start, "end": bounds.end}
        for name, bounds in BUILDINGS.items()
    ]


@router.get("/lockers", response_model=List[Locker], summary="Lister les casiers")
def list_lockers(building: Optional[str] = None, registry: LockerRegistry = Depends(get_registry)):
    """Tous les casiers triés par numéro, ou ceux d'un bâtiment (correspondance exacte)."""
    if building is not None:
        return sorted(registry.get_lockers_by_building(building), key=lambda locker: locker.id)
    return registry.get_all_lockers()


@router.get("/lockers/export", summary="Exporter les attributions en CSV")
def export_lockers(registry: LockerRegistry = Depends(get_registry)):
    """CSV (virgule) avec BOM UTF-8 pour l'ouverture directe dans Excel."""
    csv_content = "\ufeff" + registry.export_locker_assignments()
    return StreamingResponse(
        iter([csv_content]),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": "attachment; filename=casiers.csv"}
    )


@router.get("/lockers/stats", response_model=Dict[str, BuildingStats], summary="Statistiques par bâtiment")
def locker_stats(building: Optional[str] = None, registry: LockerRegistry = Depends(get_registry)):
    if building is not None:
        return {building: registry.get_stats_by_building(building)}
    return registry.get_all_stats()


@router.get("/lockers/{locker_id}", response_model=Locker, summary="Détail d'un casier")
def get_locker(locker_id: int, registry: LockerRegistry = Depends(get_registry)):
    locker = registry.get_locker(locker_id)
    if locker is None:
        raise HTTPException(status_code=404, detail="Casier introuvable.")
    return locker


@router.put("/lockers/{locker_id}/status", response_model=Locker, summary="Changer le statut d'un casier")
def update_locker_status(
    locker_id: int,
    data: LockerStatusUpdate,
    registry: LockerRegistry = Depends(get_registry),
):
    """
    Attribue, libère ou met en maintenance un casier.
    Un élève qui occupait déjà un autre casier en est libéré.
    """
    if registry.get_locker(locker_id) is None:
        raise HTTPException(status_code=404, detail="Casier introuvable.")
    if data.status != LockerStatus.FREE and data.student_id and registry.get_student(data.student_id) is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    return registry.update_locker_status(locker_id, data.status, data.student_id)
