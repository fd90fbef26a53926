"""
Service métier pour le roster des élèves côté serveur.
Les casiers ne sont pas stockés en base : ils sont lus dans le registre,
la clé commune étant le code (matricule) de l'élève.
"""

import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from casiers.models.student import Student
from casiers.registry import LockerRegistry
from casiers.schemas.student import StudentCreate, StudentResponse

logger = logging.getLogger(__name__)


def to_response(student: Student, registry: Optional[LockerRegistry] = None) -> StudentResponse:
    """Construit la réponse API d'un élève en y joignant ses casiers du registre."""
    lockers = []
    if registry is not None:
        locker = registry.get_student_locker(str(student.code))
        if locker is not None:
            lockers.append(locker)

    return StudentResponse(
        id=student.id,
        code=student.code,
        last_name=student.last_name,
        first_name=student.first_name,
        class_name=student.class_name,
        cycle=student.cycle,
        created_at=student.created_at,
        lockers=lockers,
    )


def list_students(db: Session, registry: Optional[LockerRegistry] = None) -> List[StudentResponse]:
    """Retourne tous les élèves triés par nom puis prénom."""
    students = db.execute(
        select(Student).order_by(Student.last_name, Student.first_name)
    ).scalars().all()
    return [to_response(s, registry) for s in students]


def create_student(
    db: Session, data: StudentCreate, registry: Optional[LockerRegistry] = None
) -> StudentResponse:
    """
    Crée un élève dans le roster.
    Les erreurs SQLAlchemy (code déjà utilisé, base indisponible) remontent à l'appelant
    après rollback.
    """
    student = Student(
        code=data.code,
        last_name=data.last_name,
        first_name=data.first_name,
        class_name=data.class_name,
        cycle=data.cycle.value if data.cycle else None,
    )
    db.add(student)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(student)
    logger.info("Élève %s créé (code %s)", student.id, student.code)
    return to_response(student, registry)
