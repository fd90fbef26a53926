"""
Modèle SQLAlchemy pour la table snapshots.
Stockage clé → blob JSON utilisé pour la persistance du registre des casiers.
"""

from sqlalchemy import Column, DateTime, String, Text, func

from casiers.database import Base


class Snapshot(Base):
    __tablename__ = "snapshots"

    key = Column(String(100), primary_key=True)
    data = Column(Text, nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
