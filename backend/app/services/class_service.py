"""
Service métier pour la gestion des classes scolaires.
"""

import uuid
import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.core.session import ClassSession
from app.models.school_class import SchoolClass
from app.schemas.school_class import ClassCreate, ClassResponse, ClassUpdate
from app.services.class_state_service import new_snapshot, read_snapshot

logger = logging.getLogger(__name__)

SAMPLE_CLASS_NAME = "Beispielklasse"
SAMPLE_STUDENTS = [
    ("Max", "Mustermann"),
    ("Anna", "Schmidt"),
    ("Tom", "Weber"),
    ("Lisa", "Mueller"),
    ("Paul", "Wagner"),
]


def create_class(db: Session, data: ClassCreate) -> ClassResponse:
    """
    Crée une nouvelle classe avec un plan vide.
    Les réglages non fournis prennent les valeurs par défaut de la configuration.
    Lève une ValueError si le nom existe déjà.
    """
    school_class = SchoolClass(
        name=data.name,
        starting_grade=data.starting_grade if data.starting_grade is not None else settings.DEFAULT_STARTING_GRADE,
        show_grades=data.show_grades,
        period_length=data.period_length or settings.DEFAULT_PERIOD_LENGTH,
        absent_if_unseated=(
            data.absent_if_unseated if data.absent_if_unseated is not None else settings.ABSENT_IF_UNSEATED
        ),
        state=new_snapshot().model_dump(mode="json"),
    )
    db.add(school_class)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(f"Une classe avec le nom '{data.name}' existe déjà.")
    db.refresh(school_class)
    logger.info("Classe créée : %s", school_class.name)
    return _to_response(school_class)


def create_sample_class(db: Session) -> ClassResponse:
    """Crée la classe d'exemple avec cinq élèves non placés."""
    session = ClassSession(
        starting_grade=settings.DEFAULT_STARTING_GRADE,
        period_length=settings.DEFAULT_PERIOD_LENGTH,
        absent_if_unseated=settings.ABSENT_IF_UNSEATED,
        canvas_width=settings.CANVAS_WIDTH,
        canvas_height=settings.CANVAS_HEIGHT,
    )
    for first_name, last_name in SAMPLE_STUDENTS:
        session.add_student(first_name, last_name)

    school_class = SchoolClass(
        name=SAMPLE_CLASS_NAME,
        starting_grade=session.starting_grade,
        show_grades=False,
        period_length=session.grading.period_length,
        absent_if_unseated=session.absent_if_unseated,
        state=session.to_snapshot().model_dump(mode="json"),
    )
    db.add(school_class)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError(f"La classe '{SAMPLE_CLASS_NAME}' existe déjà.")
    db.refresh(school_class)
    return _to_response(school_class)


def get_classes(db: Session) -> list[ClassResponse]:
    """Retourne toutes les classes, triées par nom."""
    classes = db.execute(
        select(SchoolClass).order_by(SchoolClass.name)
    ).scalars().all()
    return [_to_response(c) for c in classes]


def get_class(db: Session, class_id: uuid.UUID) -> Optional[ClassResponse]:
    """Retourne une classe par son ID, ou None si inexistante."""
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        return None
    return _to_response(school_class)


def update_class(db: Session, class_id: uuid.UUID, data: ClassUpdate) -> Optional[ClassResponse]:
    """Met à jour le nom et/ou les réglages fournis d'une classe."""
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        return None

    update_data = data.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in update_data.items():
        setattr(school_class, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValueError("Une classe avec ce nom existe déjà.")
    db.refresh(school_class)
    return _to_response(school_class)


def delete_class(db: Session, class_id: uuid.UUID) -> bool:
    """
    Supprime une classe et tout son plan.
    Retourne True si supprimé, False si introuvable.
    """
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        return False

    db.delete(school_class)
    db.commit()
    logger.info("Classe %s supprimée", class_id)
    return True


def _to_response(school_class: SchoolClass) -> ClassResponse:
    """Construit le schéma de réponse avec les compteurs élèves et bancs."""
    snapshot = read_snapshot(school_class)
    return ClassResponse(
        id=school_class.id,
        name=school_class.name,
        starting_grade=school_class.starting_grade,
        show_grades=school_class.show_grades,
        period_length=school_class.period_length,
        absent_if_unseated=school_class.absent_if_unseated,
        nb_students=len(snapshot.students),
        nb_desks=len(snapshot.desks),
        created_at=school_class.created_at,
        updated_at=school_class.updated_at,
    )
