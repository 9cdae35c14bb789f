"""
Service métier pour le carnet de notes : colonnes (dates), périodes,
notes, absences et retards.
"""

import uuid
import logging
from datetime import date
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.core.session import ClassSession
from app.models.school_class import SchoolClass
from app.schemas.gradebook import (
    AbsenceSet,
    ColumnCreate,
    ColumnRename,
    GradebookResponse,
    GradebookRow,
    GradeSet,
    LatenessSet,
    PeriodView,
)
from app.services.class_state_service import load_session, save_session

logger = logging.getLogger(__name__)


def get_gradebook(db: Session, class_id: uuid.UUID) -> Optional[GradebookResponse]:
    loaded = load_session(db, class_id)
    if loaded is None:
        return None
    school_class, session = loaded
    return build_gradebook(school_class, session)


def _apply(
    db: Session,
    class_id: uuid.UUID,
    operation: Callable[[ClassSession], None],
) -> Optional[GradebookResponse]:
    loaded = load_session(db, class_id)
    if loaded is None:
        return None
    school_class, session = loaded

    operation(session)
    saved = save_session(db, school_class, session)
    return build_gradebook(school_class, session, saved=saved)


def add_column(db: Session, class_id: uuid.UUID, data: ColumnCreate) -> Optional[GradebookResponse]:
    """
    Ajoute une colonne de notation.
    Lève ValueError si une colonne porte déjà ce nom.
    """
    return _apply(db, class_id, lambda s: s.add_column(data.name))


def rename_column(
    db: Session, class_id: uuid.UUID, name: str, data: ColumnRename
) -> Optional[GradebookResponse]:
    return _apply(db, class_id, lambda s: s.rename_column(name, data.new_name))


def delete_column(db: Session, class_id: uuid.UUID, name: str) -> Optional[GradebookResponse]:
    return _apply(db, class_id, lambda s: s.delete_column(name))


def set_grade(db: Session, class_id: uuid.UUID, data: GradeSet) -> Optional[GradebookResponse]:
    """Saisit (ou efface si `value` est null) une note. Note invalide ou élève absent → ValueError."""
    def operation(session: ClassSession) -> None:
        if data.value is None:
            session.clear_grade(data.student_id, data.column)
        else:
            session.set_grade(data.student_id, data.column, data.value)

    return _apply(db, class_id, operation)


def set_absence(db: Session, class_id: uuid.UUID, data: AbsenceSet) -> Optional[GradebookResponse]:
    return _apply(db, class_id, lambda s: s.set_absent(data.student_id, data.column, data.absent))


def set_lateness(db: Session, class_id: uuid.UUID, data: LatenessSet) -> Optional[GradebookResponse]:
    return _apply(db, class_id, lambda s: s.set_lateness(data.student_id, data.column, data.level))


def reset_lateness(db: Session, class_id: uuid.UUID) -> Optional[GradebookResponse]:
    return _apply(db, class_id, lambda s: s.reset_lateness())


def build_gradebook(
    school_class: SchoolClass,
    session: ClassSession,
    saved: bool = True,
    today: Optional[date] = None,
) -> GradebookResponse:
    """Construit le tableau des notes avec les moyennes par période et générale."""
    ledger = session.ledger
    rows = []
    for student in session.students:
        absences = ledger.absences.row(student.id)
        rows.append(GradebookRow(
            student_id=student.id,
            first_name=student.first_name,
            last_name=student.last_name,
            grades=ledger.grades.row(student.id),
            absences=[column for column, absent in absences.items() if absent],
            lateness=ledger.lateness.row(student.id),
            period_grades={p.id: session.period_grade(student.id, p.id) for p in session.periods},
            overall_average=session.overall_average(student.id),
            nb_late=session.count_late(student.id),
            nb_absent=session.count_absent(student.id),
            lateness_level=session.current_lateness_level(student.id, today),
        ))

    return GradebookResponse(
        class_id=school_class.id,
        columns=session.columns,
        periods=[
            PeriodView(
                id=p.id,
                name=p.name,
                columns=list(p.columns),
                max_columns=p.max_columns,
                active=p.active,
                closed=p.is_full,
            )
            for p in session.periods
        ],
        active_period_id=session.active_period_id,
        rows=rows,
        saved=saved,
    )
