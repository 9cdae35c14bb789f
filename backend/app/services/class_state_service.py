"""
Chargement et enregistrement de l'état d'une classe.

L'état est stocké dans la colonne JSON `classes.state` (ClassSnapshot aplati).
Les réglages (note de départ, affichage, longueur de période, règle d'absence)
sont portés par les colonnes de la table et font foi.
"""

import uuid
import logging
from typing import Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.core.session import ClassSession
from app.core.snapshot import ClassSnapshot
from app.models.school_class import SchoolClass

logger = logging.getLogger(__name__)


def new_snapshot() -> ClassSnapshot:
    """Instantané vide avec les dimensions de canevas configurées."""
    return ClassSnapshot(canvas_width=settings.CANVAS_WIDTH, canvas_height=settings.CANVAS_HEIGHT)


def read_snapshot(school_class: SchoolClass) -> ClassSnapshot:
    if not school_class.state:
        return new_snapshot()
    return ClassSnapshot.model_validate(school_class.state)


def session_from_class(school_class: SchoolClass) -> ClassSession:
    """Reconstruit la session en mémoire à partir de la ligne `classes`."""
    session = ClassSession.from_snapshot(read_snapshot(school_class))
    session.starting_grade = school_class.starting_grade
    session.show_grades = bool(school_class.show_grades)
    session.grading.period_length = school_class.period_length
    session.absent_if_unseated = bool(school_class.absent_if_unseated)
    return session


def load_session(db: Session, class_id: uuid.UUID) -> Optional[Tuple[SchoolClass, ClassSession]]:
    """Retourne (classe, session), ou None si la classe est introuvable."""
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        return None
    return school_class, session_from_class(school_class)


def save_session(db: Session, school_class: SchoolClass, session: ClassSession) -> bool:
    """
    Enregistre l'état de la session dans la ligne `classes`.

    Un échec d'écriture n'est pas fatal : il est journalisé, la transaction
    est annulée et False est retourné (l'appelant le signale à l'utilisateur).
    """
    school_class.state = session.to_snapshot().model_dump(mode="json")
    school_class.starting_grade = session.starting_grade
    school_class.show_grades = session.show_grades
    school_class.period_length = session.grading.period_length
    school_class.absent_if_unseated = session.absent_if_unseated
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Échec de l'enregistrement de la classe %s : %s", school_class.id, exc)
        return False
    return True


def get_state(db: Session, class_id: uuid.UUID) -> Optional[ClassSnapshot]:
    loaded = load_session(db, class_id)
    if loaded is None:
        return None
    return loaded[1].to_snapshot()


def replace_state(db: Session, class_id: uuid.UUID, snapshot: ClassSnapshot) -> Optional[ClassSnapshot]:
    """Remplace tout l'état d'une classe (import depuis le stockage local)."""
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        return None

    session = ClassSession.from_snapshot(snapshot)
    if not save_session(db, school_class, session):
        raise ValueError("L'état de la classe n'a pas pu être enregistré.")
    logger.info(
        "État de la classe %s remplacé : %d élèves, %d bancs, %d colonnes",
        class_id, len(snapshot.students), len(snapshot.desks), len(snapshot.columns),
    )
    return session.to_snapshot()
