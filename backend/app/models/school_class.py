"""
Modèle SQLAlchemy pour les classes et leur plan de classe.
Nommé school_class pour éviter le conflit avec le mot-clé Python 'class'.

L'état complet de la classe (élèves, bancs, compteurs, notes, présences,
retards, périodes) est stocké dans la colonne JSON `state` sous la forme
aplatie de `ClassSnapshot`.
"""

import uuid
from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Integer, String, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class SchoolClass(Base):
    __tablename__ = "classes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(100), unique=True, nullable=False)
    starting_grade = Column(Float, nullable=False, default=4.0)
    show_grades = Column(Boolean, nullable=False, default=False)
    period_length = Column(Integer, nullable=False, default=5)
    absent_if_unseated = Column(Boolean, nullable=False, default=True)
    state = Column(JSON, nullable=True)   # ClassSnapshot.model_dump(mode="json")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
