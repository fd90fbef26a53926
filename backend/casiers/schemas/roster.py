"""
Schémas Pydantic pour l'import CSV des élèves dans le registre.
"""

from typing import List, Union

from pydantic import BaseModel, Field

from casiers.schemas.registry import Cycle, Student


class RosterRow(BaseModel):
    """Ligne valide du CSV après parsing, prête à être ajoutée au registre."""
    line: int
    code: str
    last_name: str
    first_name: str
    class_name: str = Field(alias="class")
    cycle: Cycle

    model_config = {"populate_by_name": True}

    def to_student(self) -> Student:
        return Student(
            id=self.code,
            matricule=self.code,
            last_name=self.last_name,
            first_name=self.first_name,
            class_name=self.class_name,
            cycle=self.cycle,
        )


class RejectedRow(BaseModel):
    """Ligne rejetée, avec la raison du rejet."""
    line: int
    content: str
    reason: str


ParsedRow = Union[RosterRow, RejectedRow]


class RosterPreview(BaseModel):
    """Aperçu d'un import (dry run) : rien n'est écrit dans le registre."""
    valid: List[RosterRow]
    rejected: List[RejectedRow]


class RosterImportReport(BaseModel):
    """Rapport retourné après l'import d'un fichier dans le registre."""
    total_rows: int
    imported: int
    rejected: int
    imported_codes: List[str]
    errors: List[RejectedRow]
