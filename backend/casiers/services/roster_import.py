"""
Import CSV des élèves dans le registre des casiers.

Deux étapes séparées :
- parse_roster : fonction pure, valide chaque ligne et produit RosterRow ou RejectedRow ;
- commit_roster : ajoute les lignes valides au registre, ligne par ligne.

Format attendu : `Code;Nom;Prénom;Classe;Type`, séparateur point-virgule,
première ligne = en-tête (ignorée), lignes vides ignorées.
"""

import csv
import io
import logging
from typing import Container, List, Tuple

from pydantic import ValidationError

from casiers.registry import LockerRegistry
from casiers.schemas.registry import Cycle
from casiers.schemas.roster import (
    ParsedRow,
    RejectedRow,
    RosterImportReport,
    RosterPreview,
    RosterRow,
)

logger = logging.getLogger(__name__)

SEPARATOR = ";"

MISSING_FIELDS = "Tous les champs sont obligatoires"
DUPLICATE_CODE = "Un élève avec ce code existe déjà"
DUPLICATE_IN_FILE = "Code en double dans le fichier"
INVALID_TYPE = "Type invalide"


class RosterFileError(ValueError):
    """Fichier inutilisable dans son ensemble (vide, encodage)."""


def decode_roster(content: bytes) -> str:
    """Décode le fichier reçu ; utf-8-sig gère le BOM Excel."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise RosterFileError("Encodage non supporté : le fichier doit être en UTF-8.")


def _parse_cycle(raw: str) -> Cycle:
    return Cycle(raw.strip().upper())


def parse_roster(text: str, existing_codes: Container[str]) -> List[ParsedRow]:
    """
    Valide chaque ligne du CSV sans rien modifier.

    Une ligne est rejetée si un champ obligatoire manque (code, nom, prénom, classe),
    si le code existe déjà dans `existing_codes` ou plus haut dans le fichier,
    ou si le type n'est ni LEP ni LG.
    Lève RosterFileError si le fichier ne contient aucune ligne de données.
    """
    reader = csv.reader(io.StringIO(text.lstrip("\ufeff")), delimiter=SEPARATOR)
    rows: List[ParsedRow] = []
    seen_codes: set[str] = set()

    for line_num, raw in enumerate(reader, start=1):
        if line_num == 1:
            continue  # en-tête
        if not any(cell.strip() for cell in raw):
            continue

        cells = [cell.strip() for cell in raw] + [""] * 5
        code, last_name, first_name, class_name, cycle_raw = cells[:5]
        content = SEPARATOR.join(raw)

        if not code or not last_name or not first_name or not class_name:
            rows.append(RejectedRow(line=line_num, content=content, reason=MISSING_FIELDS))
            continue

        if code in existing_codes:
            rows.append(RejectedRow(line=line_num, content=content, reason=DUPLICATE_CODE))
            continue

        if code in seen_codes:
            rows.append(RejectedRow(line=line_num, content=content, reason=DUPLICATE_IN_FILE))
            continue

        try:
            cycle = _parse_cycle(cycle_raw)
        except ValueError:
            rows.append(RejectedRow(
                line=line_num,
                content=content,
                reason=f"{INVALID_TYPE} : '{cycle_raw}' (LEP ou LG attendu)",
            ))
            continue

        seen_codes.add(code)
        rows.append(RosterRow(
            line=line_num,
            code=code,
            last_name=last_name,
            first_name=first_name,
            class_name=class_name,
            cycle=cycle,
        ))

    if not rows:
        raise RosterFileError("Le fichier est vide ou ne contient que l'en-tête.")

    return rows


def split_rows(rows: List[ParsedRow]) -> Tuple[List[RosterRow], List[RejectedRow]]:
    valid = [row for row in rows if isinstance(row, RosterRow)]
    rejected = [row for row in rows if isinstance(row, RejectedRow)]
    return valid, rejected


def preview_roster(registry: LockerRegistry, text: str) -> RosterPreview:
    """Parse le fichier contre l'état actuel du registre, sans rien écrire."""
    codes = {student.id for student in registry.get_all_students()}
    valid, rejected = split_rows(parse_roster(text, codes))
    return RosterPreview(valid=valid, rejected=rejected)


def commit_roster(registry: LockerRegistry, rows: List[ParsedRow]) -> RosterImportReport:
    """
    Ajoute au registre chaque ligne valide, indépendamment des autres.
    Une ligne dont le code est apparu dans le registre depuis le parsing est rejetée ;
    un rejet n'interrompt jamais le lot.
    """
    valid, errors = split_rows(rows)
    imported: List[str] = []

    for row in valid:
        if registry.get_student(row.code) is not None:
            errors.append(RejectedRow(line=row.line, content=row.code, reason=DUPLICATE_CODE))
            continue
        try:
            student = row.to_student()
        except ValidationError as exc:
            logger.warning("Ligne %d ignorée : %s", row.line, exc)
            errors.append(RejectedRow(line=row.line, content=row.code, reason=str(exc)))
            continue
        registry.add_student(student)
        imported.append(row.code)

    logger.info("Import registre : %d élèves importés, %d lignes rejetées", len(imported), len(errors))

    return RosterImportReport(
        total_rows=len(rows),
        imported=len(imported),
        rejected=len(errors),
        imported_codes=imported,
        errors=sorted(errors, key=lambda e: e.line),
    )


def import_roster(registry: LockerRegistry, text: str) -> RosterImportReport:
    """Parse puis importe un fichier complet."""
    codes = {student.id for student in registry.get_all_students()}
    return commit_roster(registry, parse_roster(text, codes))
