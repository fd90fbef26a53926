"""
Modèle SQLAlchemy pour la table students (roster côté serveur).
Le code (matricule) est l'identifiant métier partagé avec le registre des casiers.
"""

from sqlalchemy import Column, DateTime, Integer, String, func

from casiers.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(Integer, unique=True, nullable=False)       # matricule, ex: 1245
    last_name = Column(String(100), nullable=False)
    first_name = Column(String(100), nullable=False)
    class_name = Column("classe", String(50), nullable=False)
    cycle = Column(String(10), nullable=True)                 # LEP, LG
    created_at = Column(DateTime, server_default=func.now())
