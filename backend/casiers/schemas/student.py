"""
Schémas Pydantic pour le roster des élèves côté serveur (table students).
Les clés JSON suivent le contrat de l'API : lastName, firstName, class, code.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from casiers.schemas.registry import Cycle, Locker


class StudentCreate(BaseModel):
    """Schéma de création manuelle d'un élève (POST /students)."""
    last_name: str = Field(alias="lastName")
    first_name: str = Field(alias="firstName")
    class_name: str = Field(alias="class")
    code: int
    cycle: Optional[Cycle] = Field(default=None, alias="type")

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("last_name", "first_name", "class_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()


class StudentResponse(BaseModel):
    """Élève du roster, accompagné des casiers que le registre lui attribue."""
    id: int
    code: int
    last_name: str = Field(alias="lastName")
    first_name: str = Field(alias="firstName")
    class_name: str = Field(alias="class")
    cycle: Optional[str] = Field(default=None, alias="type")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    lockers: List[Locker] = []

    model_config = ConfigDict(populate_by_name=True)


class StudentImportRow(BaseModel):
    """Représente une ligne valide du CSV serveur après parsing."""
    code: int
    last_name: str
    first_name: str
    class_name: str
    cycle: Optional[str] = None


class StudentImportResult(BaseModel):
    """Résultat retourné après POST /students/import."""
    message: str
    count: int
    imported_students: List[StudentResponse] = Field(alias="importedStudents")

    model_config = ConfigDict(populate_by_name=True)
