"""
Router pour les élèves du registre, l'import CSV côté registre et l'historique.
"""

from typing import List, Optional, Union

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from casiers.config import settings
from casiers.registry import LockerRegistry
from casiers.schemas.registry import Cycle, HistoryEntry, Locker, Student, StudentUpdate
from casiers.schemas.roster import RosterImportReport, RosterPreview
from casiers.services.roster_import import (
    RosterFileError,
    decode_roster,
    import_roster,
    preview_roster,
)
from casiers.state import get_registry

router = APIRouter(prefix="/api/v1", tags=["Registre"])


# --- Élèves ---

@router.get("/registry/students", response_model=List[Student], summary="Lister ou rechercher les élèves")
def list_registry_students(
    q: Optional[str] = None,
    cycle: Optional[Cycle] = None,
    registry: LockerRegistry = Depends(get_registry),
):
    """Recherche par sous-chaîne (nom, prénom, matricule) et/ou filtre par cycle."""
    students = registry.search_students(q) if q else registry.get_all_students()
    if cycle is not None:
        students = [s for s in students if s.cycle == cycle]
    return students


@router.post("/registry/students", response_model=Student, status_code=201, summary="Ajouter un élève")
def add_registry_student(data: Student, registry: LockerRegistry = Depends(get_registry)):
    if registry.get_student(data.id) is not None:
        raise HTTPException(status_code=409, detail="Un élève avec ce code existe déjà.")
    registry.add_student(data)
    return data


@router.get("/registry/students/{student_id}", response_model=Student, summary="Détail d'un élève")
def get_registry_student(student_id: str, registry: LockerRegistry = Depends(get_registry)):
    student = registry.get_student(student_id)
    if student is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    return student


@router.patch("/registry/students/{student_id}", response_model=Student, summary="Modifier un élève")
def update_registry_student(
    student_id: str,
    data: StudentUpdate,
    registry: LockerRegistry = Depends(get_registry),
):
    """Met à jour les champs fournis. Les champs absents ne sont pas modifiés."""
    student = registry.update_student(
        student_id,
        first_name=data.first_name,
        last_name=data.last_name,
        class_name=data.class_name,
        cycle=data.cycle,
    )
    if student is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    return student


@router.delete("/registry/students/{student_id}", status_code=204, summary="Supprimer un élève")
def delete_registry_student(student_id: str, registry: LockerRegistry = Depends(get_registry)):
    """Supprime l'élève ; son casier éventuel est libéré."""
    if registry.remove_student(student_id) is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")


@router.get(
    "/registry/students/{student_id}/locker",
    response_model=Optional[Locker],
    summary="Casier d'un élève",
)
def get_registry_student_locker(student_id: str, registry: LockerRegistry = Depends(get_registry)):
    """Retourne le casier de l'élève, ou null s'il n'en a pas."""
    if registry.get_student(student_id) is None:
        raise HTTPException(status_code=404, detail="Élève introuvable.")
    return registry.get_student_locker(student_id)


@router.post(
    "/registry/students/import",
    response_model=Union[RosterImportReport, RosterPreview],
    summary="Importer des élèves dans le registre via CSV",
)
async def import_registry_students(
    file: UploadFile = File(...),
    dry_run: bool = False,
    registry: LockerRegistry = Depends(get_registry),
):
    """
    Importe un fichier `Code;Nom;Prénom;Classe;Type` (en-tête sur la première ligne).

    - `dry_run=true` : retourne l'aperçu (lignes valides / rejetées) sans rien écrire.
    - Sinon : importe les lignes valides et retourne le rapport.
    """
    if not file.filename or not file.filename.lower().endswith(".csv"):
        raise HTTPException(status_code=400, detail="Le fichier doit être au format CSV.")

    content = await file.read()

    if len(content) > settings.MAX_FILE_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"Fichier trop volumineux. Taille maximale : {settings.MAX_FILE_SIZE_MB} Mo."
        )

    try:
        text = decode_roster(content)
        if dry_run:
            return preview_roster(registry, text)
        return import_roster(registry, text)
    except RosterFileError as e:
        raise HTTPException(status_code=400, detail=str(e))


# --- Historique et remise à zéro ---

@router.get("/history", response_model=List[HistoryEntry], summary="Historique des modifications")
def get_history(registry: LockerRegistry = Depends(get_registry)):
    """Entrées de la plus récente à la plus ancienne (100 maximum)."""
    return registry.get_history()


@router.delete("/history", status_code=204, summary="Vider l'historique")
def clear_history(registry: LockerRegistry = Depends(get_registry)):
    registry.clear_history()


@router.delete("/registry", status_code=204, summary="Effacer toutes les données du registre")
def clear_registry(registry: LockerRegistry = Depends(get_registry)):
    """Supprime casiers, élèves, historique et le snapshot persistant."""
    registry.clear_all_data()
