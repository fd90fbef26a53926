"""
Service d'import CSV du roster serveur (POST /students/import).

Format : une ligne par élève, sans en-tête, séparateur virgule,
colonnes `code,nom,prenom,classe,type`.

Chaque ligne est traitée indépendamment :
- ligne incomplète ou code non numérique → ignorée (journalisée) ;
- échec d'insertion (code déjà présent…) → rollback de cette ligne seulement.
"""

import csv
import io
import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from casiers.models.student import Student
from casiers.registry import LockerRegistry
from casiers.schemas.student import StudentImportResult, StudentImportRow, StudentResponse
from casiers.services.student_service import to_response

logger = logging.getLogger(__name__)

COLUMNS = ("code", "nom", "prenom", "classe", "type")


def _parse_row(raw: List[str]) -> Optional[StudentImportRow]:
    """Retourne la ligne validée, ou None si elle doit être ignorée."""
    cells = [cell.strip() for cell in raw] + [""] * len(COLUMNS)
    record = dict(zip(COLUMNS, cells))

    if not record["nom"] or not record["prenom"] or not record["classe"]:
        return None
    try:
        code = int(record["code"])
    except ValueError:
        return None

    return StudentImportRow(
        code=code,
        last_name=record["nom"],
        first_name=record["prenom"],
        class_name=record["classe"],
        cycle=record["type"].upper() or None,
    )


def parse_students_csv(text: str) -> List[StudentImportRow]:
    """Parse le CSV et écarte les lignes invalides (avec un warning)."""
    rows: List[StudentImportRow] = []
    reader = csv.reader(io.StringIO(text), delimiter=",")

    for line_num, raw in enumerate(reader, start=1):
        if not any(cell.strip() for cell in raw):
            continue
        row = _parse_row(raw)
        if row is None:
            logger.warning("Données invalides ligne %d : %s", line_num, raw)
            continue
        rows.append(row)

    return rows


def import_students_csv(
    content: bytes, db: Session, registry: Optional[LockerRegistry] = None
) -> StudentImportResult:
    """
    Importe chaque ligne valide avec son propre commit.
    Lève ValueError si le fichier n'est pas décodable en UTF-8.
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValueError("Encodage non supporté : le fichier doit être en UTF-8.")

    imported: List[StudentResponse] = []
    for row in parse_students_csv(text):
        student = Student(
            code=row.code,
            last_name=row.last_name,
            first_name=row.first_name,
            class_name=row.class_name,
            cycle=row.cycle,
        )
        db.add(student)
        try:
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error(
                "Erreur lors de l'importation de l'élève %s %s : %s",
                row.last_name, row.first_name, exc,
            )
            continue
        db.refresh(student)
        imported.append(to_response(student, registry))

    logger.info("Import roster : %d élèves importés", len(imported))
    return StudentImportResult(
        message=f"{len(imported)} étudiants importés avec succès",
        count=len(imported),
        imported_students=imported,
    )
