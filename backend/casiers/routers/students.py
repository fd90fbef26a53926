"""
Router pour le roster des élèves côté serveur.
GET  /api/v1/students         : liste des élèves avec leurs casiers
POST /api/v1/students         : création manuelle
POST /api/v1/students/import  : import CSV (sans en-tête, séparateur virgule)
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from casiers.config import settings
from casiers.database import get_db
from casiers.registry import LockerRegistry
from casiers.schemas.student import StudentCreate, StudentImportResult, StudentResponse
from casiers.services import student_service
from casiers.services.student_import import import_students_csv
from casiers.state import get_registry

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/students", tags=["Élèves"])


@router.get("", response_model=List[StudentResponse], summary="Lister tous les élèves")
def list_students(
    db: Session = Depends(get_db),
    registry: LockerRegistry = Depends(get_registry),
):
    """Retourne tous les élèves triés par nom puis prénom, avec leurs casiers."""
    try:
        return student_service.list_students(db, registry)
    except SQLAlchemyError as exc:
        logger.error("Erreur lors de la récupération des élèves : %s", exc)
        raise HTTPException(status_code=500, detail="Erreur lors de la récupération des élèves.")


@router.post("", response_model=StudentResponse, status_code=201, summary="Créer un élève manuellement")
def create_student(
    data: StudentCreate,
    db: Session = Depends(get_db),
    registry: LockerRegistry = Depends(get_registry),
):
    """Crée un élève (hors import CSV). Toute erreur de persistance renvoie une 500 générique."""
    try:
        return student_service.create_student(db, data, registry)
    except SQLAlchemyError as exc:
        logger.error("Erreur lors de la création de l'élève : %s", exc)
        raise HTTPException(status_code=500, detail="Erreur lors de la création de l'élève.")


@router.post("/import", response_model=StudentImportResult, summary="Importer des élèves via CSV")
async def import_students(
    file: Optional[UploadFile] = File(None),
    db: Session = Depends(get_db),
    registry: LockerRegistry = Depends(get_registry),
):
    """
    Importe des élèves depuis un fichier CSV.

    Format attendu :
    - Colonnes, dans l'ordre : code, nom, prénom, classe, type
    - Pas de ligne d'en-tête, séparateur virgule (`,`)
    - Encodage : UTF-8 (avec ou sans BOM)

    Les lignes incomplètes ou au code non numérique sont ignorées.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="Aucun fichier n'a été fourni.")

    content = await file.read()

    if len(content) > settings.MAX_FILE_SIZE_MB * 1024 * 1024:
        raise HTTPException(
            status_code=400,
            detail=f"Fichier trop volumineux. Taille maximale : {settings.MAX_FILE_SIZE_MB} Mo."
        )

    try:
        return import_students_csv(content, db, registry)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
