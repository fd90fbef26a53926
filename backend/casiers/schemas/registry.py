"""
Schémas Pydantic du registre des casiers : casiers, élèves, historique, statistiques.
Ces modèles sont aussi le format du snapshot JSON persisté.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class LockerStatus(str, Enum):
    FREE = "free"
    ASSIGNED = "assigned"
    MAINTENANCE = "maintenance"


class Cycle(str, Enum):
    LEP = "LEP"
    LG = "LG"


class HistoryAction(str, Enum):
    LOCKER_ADDED = "Ajout casier"
    LOCKER_ASSIGNED = "Attribution casier"
    LOCKER_UNASSIGNED = "Désattribution casier"
    LOCKER_MAINTENANCE = "Maintenance casier"
    STUDENT_ADDED = "Ajout élève"
    STUDENT_UPDATED = "Modification élève"
    STUDENT_REMOVED = "Suppression élève"


class Locker(BaseModel):
    """Casier physique, identifié par son numéro."""
    id: int
    building: str
    status: LockerStatus = LockerStatus.FREE
    student_id: Optional[str] = None


class Student(BaseModel):
    """
    Élève du registre. `id` est le matricule (code) ; `class_name` est
    sérialisé sous la clé `class`.
    """
    id: str
    matricule: str = ""
    first_name: str
    last_name: str
    class_name: str = Field(alias="class")
    cycle: Cycle

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("id", "first_name", "last_name", "class_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()

    @model_validator(mode="after")
    def default_matricule(self) -> "Student":
        if not self.matricule:
            self.matricule = self.id
        return self

    @property
    def full_name(self) -> str:
        return f"{self.last_name} {self.first_name}"


class StudentUpdate(BaseModel):
    """Mise à jour partielle d'un élève du registre (PATCH)."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    class_name: Optional[str] = Field(default=None, alias="class")
    cycle: Optional[Cycle] = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("first_name", "last_name", "class_name")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip() if v else v


class HistoryEntry(BaseModel):
    """Entrée immuable du journal des modifications."""
    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:9])
    date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    action: HistoryAction
    details: str

    model_config = ConfigDict(frozen=True)


class LockerStatusUpdate(BaseModel):
    """Corps de PUT /lockers/{id}/status."""
    status: LockerStatus
    student_id: Optional[str] = None

    @model_validator(mode="after")
    def assigned_needs_student(self) -> "LockerStatusUpdate":
        if self.status == LockerStatus.ASSIGNED and not self.student_id:
            raise ValueError("Un casier attribué doit référencer un élève.")
        return self


class BuildingStats(BaseModel):
    total: int = 0
    assigned: int = 0
    maintenance: int = 0
    free: int = 0


class RegistrySnapshot(BaseModel):
    """Contenu du blob persisté : paires [id, objet] + historique."""
    lockers: List[tuple[int, Locker]] = []
    students: List[tuple[str, Student]] = []
    history: List[HistoryEntry] = []
