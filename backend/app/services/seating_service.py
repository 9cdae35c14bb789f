"""
Service métier pour le plan de classe : élèves, bancs, affectations et compteurs.

Chaque opération suit le même cycle : charger la session de la classe,
appliquer la mutation du moteur, enregistrer, renvoyer la vue du plan.
Les fonctions retournent None si la classe est introuvable et laissent
remonter les ValueError du moteur (opération refusée).
"""

import uuid
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.config import settings
from app.core.session import ClassSession
from app.models.school_class import SchoolClass
from app.schemas.seating import (
    DeskCreate,
    DeskMove,
    DeskView,
    SeatAssign,
    SeatingPlanResponse,
    StudentCreate,
    StudentUpdate,
    StudentView,
)
from app.services.class_state_service import load_session, save_session

logger = logging.getLogger(__name__)


class NoFreeSpaceError(ValueError):
    """Plus de place libre sur le canevas pour un nouveau banc."""


def get_seating_plan(db: Session, class_id: uuid.UUID) -> Optional[SeatingPlanResponse]:
    loaded = load_session(db, class_id)
    if loaded is None:
        return None
    school_class, session = loaded
    return build_plan(school_class, session)


def _apply(
    db: Session,
    class_id: uuid.UUID,
    operation: Callable[[ClassSession], bool],
) -> Optional[SeatingPlanResponse]:
    """Charge, applique `operation` (retourne False si ignorée), enregistre."""
    loaded = load_session(db, class_id)
    if loaded is None:
        return None
    school_class, session = loaded

    applied = operation(session)
    saved = save_session(db, school_class, session) if applied else True
    return build_plan(school_class, session, applied=applied, saved=saved)


# --- Élèves ---

def add_student(db: Session, class_id: uuid.UUID, data: StudentCreate) -> Optional[SeatingPlanResponse]:
    def operation(session: ClassSession) -> bool:
        student = session.add_student(data.first_name, data.last_name, data.photo)
        logger.info("Élève %s ajouté à la classe %s", student.full_name, class_id)
        return True

    return _apply(db, class_id, operation)


def update_student(
    db: Session, class_id: uuid.UUID, student_id: uuid.UUID, data: StudentUpdate
) -> Optional[SeatingPlanResponse]:
    def operation(session: ClassSession) -> bool:
        session.edit_student(student_id, data.first_name, data.last_name, data.photo)
        return True

    return _apply(db, class_id, operation)


def delete_student(db: Session, class_id: uuid.UUID, student_id: uuid.UUID) -> Optional[SeatingPlanResponse]:
    def operation(session: ClassSession) -> bool:
        session.delete_student(student_id)
        return True

    return _apply(db, class_id, operation)


# --- Bancs ---

def add_desk(db: Session, class_id: uuid.UUID, data: DeskCreate) -> Optional[SeatingPlanResponse]:
    """Ajoute un banc à la première place libre. Lève NoFreeSpaceError si le canevas est plein."""
    def operation(session: ClassSession) -> bool:
        if session.add_desk(data.type) is None:
            raise NoFreeSpaceError("Plus de place libre pour un nouveau banc.")
        return True

    return _apply(db, class_id, operation)


def move_desk(db: Session, class_id: uuid.UUID, desk_id: int, data: DeskMove) -> Optional[SeatingPlanResponse]:
    """Déplace un banc ; `applied` vaut False si le déplacement a été refusé (collision)."""
    def operation(session: ClassSession) -> bool:
        desk = session.layout.require(desk_id)
        before = (desk.x, desk.y)
        return session.move_desk(desk_id, data.x, data.y) != before

    return _apply(db, class_id, operation)


def remove_desk(db: Session, class_id: uuid.UUID, desk_id: int) -> Optional[SeatingPlanResponse]:
    def operation(session: ClassSession) -> bool:
        released = session.remove_desk(desk_id)
        logger.info("Banc %s supprimé, %d élève(s) renvoyé(s) dans la liste", desk_id, len(released))
        return True

    return _apply(db, class_id, operation)


# --- Affectations ---

def assign_seat(db: Session, class_id: uuid.UUID, data: SeatAssign) -> Optional[SeatingPlanResponse]:
    """Place un élève ; un banc plein est ignoré silencieusement (`applied` à False)."""
    return _apply(db, class_id, lambda s: s.assign(data.student_id, data.desk_id, data.drop_side))


def unassign_seat(db: Session, class_id: uuid.UUID, student_id: uuid.UUID) -> Optional[SeatingPlanResponse]:
    return _apply(db, class_id, lambda s: s.unassign(student_id))


def reset_seats(db: Session, class_id: uuid.UUID) -> Optional[SeatingPlanResponse]:
    def operation(session: ClassSession) -> bool:
        session.reset_all_seats()
        return True

    return _apply(db, class_id, operation)


# --- Compteurs ---

def increment_counter(db: Session, class_id: uuid.UUID, student_id: uuid.UUID) -> Optional[SeatingPlanResponse]:
    def operation(session: ClassSession) -> bool:
        session.increment_counter(student_id)
        return True

    return _apply(db, class_id, operation)


def decrement_counter(db: Session, class_id: uuid.UUID, student_id: uuid.UUID) -> Optional[SeatingPlanResponse]:
    def operation(session: ClassSession) -> bool:
        session.decrement_counter(student_id)
        return True

    return _apply(db, class_id, operation)


def reset_counters(db: Session, class_id: uuid.UUID) -> Optional[SeatingPlanResponse]:
    def operation(session: ClassSession) -> bool:
        session.reset_counters()
        return True

    return _apply(db, class_id, operation)


# --- Vue ---

def build_plan(
    school_class: SchoolClass,
    session: ClassSession,
    applied: bool = True,
    saved: bool = True,
) -> SeatingPlanResponse:
    """Construit la vue du plan de classe à partir de la session."""
    students = []
    for student in session.students:
        desk = session.desk_of(student.id)
        students.append(StudentView(
            id=student.id,
            first_name=student.first_name,
            last_name=student.last_name,
            initials=student.initials,
            photo=student.photo,
            desk_id=desk.id if desk else None,
            desk_position=student.desk_position,
            counter=session.counter(student.id),
            quick_grade=session.calculate_grade(student.id),
            grade_band=session.quick_grade_band(student.id),
            lateness_level=session.current_lateness_level(student.id),
        ))

    return SeatingPlanResponse(
        class_id=school_class.id,
        canvas_width=session.layout.canvas_width,
        canvas_height=session.layout.canvas_height,
        show_grades=session.show_grades,
        starting_grade=session.starting_grade,
        long_press_ms=settings.LONG_PRESS_DELAY_MS,
        students=students,
        desks=[
            DeskView(id=d.id, type=d.type, x=d.x, y=d.y, capacity=d.capacity, students=list(d.students))
            for d in session.desks
        ],
        unassigned=[s.id for s in session.unassigned_students()],
        applied=applied,
        saved=saved,
    )
