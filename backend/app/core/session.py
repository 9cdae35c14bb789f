"""
Session d'édition d'une classe : point d'entrée unique du moteur.

Une instance par classe ouverte ; elle regroupe le registre des élèves, la
disposition des bancs, les affectations, le registre des présences, les
périodes de notation et les compteurs. Chaque mutation notifie les abonnés
(rendu, persistance) ; l'échec d'un abonné est journalisé et ne remet pas
en cause l'état en mémoire.
"""

import uuid
import logging
from datetime import date
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.core.assignment import AssignmentEngine
from app.core.gestures import CounterAction
from app.core.grading import (
    DEFAULT_PERIOD_LENGTH,
    DEFAULT_STARTING_GRADE,
    GradingEngine,
    Period,
    format_grade,
    grade_band,
    quick_score_grade,
)
from app.core.layout import DEFAULT_CANVAS_HEIGHT, DEFAULT_CANVAS_WIDTH, Desk, DeskLayout, DeskType
from app.core.ledger import MAX_GRADE, MIN_GRADE, AttendanceLedger
from app.core.roster import Roster, Student
from app.core.snapshot import ClassSnapshot
from app.core.tables import NestedTable

logger = logging.getLogger(__name__)

Listener = Callable[[str, "ClassSession"], None]


class ClassSession:
    def __init__(
        self,
        starting_grade: float = DEFAULT_STARTING_GRADE,
        period_length: int = DEFAULT_PERIOD_LENGTH,
        absent_if_unseated: bool = True,
        show_grades: bool = False,
        canvas_width: int = DEFAULT_CANVAS_WIDTH,
        canvas_height: int = DEFAULT_CANVAS_HEIGHT,
    ):
        self.starting_grade = starting_grade
        self.show_grades = show_grades
        # Règle héritée : un élève non placé le jour de la notation est noté absent
        self.absent_if_unseated = absent_if_unseated

        self.roster = Roster()
        self.layout = DeskLayout(canvas_width, canvas_height)
        self.seating = AssignmentEngine(self.roster, self.layout)
        self.ledger = AttendanceLedger()
        self.grading = GradingEngine(self.ledger, period_length=period_length)
        self.counters: Dict[uuid.UUID, int] = {}

        self._listeners: List[Listener] = []

    # ------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, self)
            except Exception as exc:
                logger.error("Abonné en échec sur l'événement '%s' : %s", event, exc, exc_info=True)

    # ------------------------------------------------------------
    # Élèves
    # ------------------------------------------------------------

    def get_student(self, student_id: uuid.UUID) -> Optional[Student]:
        return self.roster.get(student_id)

    @property
    def students(self) -> List[Student]:
        return self.roster.all()

    def unassigned_students(self) -> List[Student]:
        return [self.roster.require(sid) for sid in self.seating.unassigned_students()]

    def add_student(
        self,
        first_name: str,
        last_name: str,
        photo: Optional[str] = None,
        student_id: Optional[uuid.UUID] = None,
    ) -> Student:
        student = self.roster.add(first_name, last_name, photo, student_id)
        self._notify("student_added")
        return student

    def edit_student(
        self,
        student_id: uuid.UUID,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        photo: Optional[str] = None,
    ) -> Student:
        student = self.roster.edit(student_id, first_name, last_name, photo)
        self._notify("student_updated")
        return student

    def delete_student(self, student_id: uuid.UUID) -> None:
        """Supprime l'élève et toutes ses données (banc, compteur, notes, présences)."""
        self.roster.require(student_id)
        self.seating.unassign(student_id)
        self.roster.remove(student_id)
        self.counters.pop(student_id, None)
        self.ledger.drop_student(student_id)
        logger.info("Élève %s supprimé avec ses données", student_id)
        self._notify("student_deleted")

    # ------------------------------------------------------------
    # Bancs et affectations
    # ------------------------------------------------------------

    def get_desk(self, desk_id: int) -> Optional[Desk]:
        return self.layout.get(desk_id)

    @property
    def desks(self) -> List[Desk]:
        return self.layout.all()

    def desk_of(self, student_id: uuid.UUID) -> Optional[Desk]:
        return self.layout.desk_of(student_id)

    def is_seated(self, student_id: uuid.UUID) -> bool:
        return self.layout.desk_of(student_id) is not None

    def add_desk(self, desk_type: DeskType) -> Optional[Desk]:
        desk = self.layout.add_desk(desk_type)
        if desk is not None:
            self._notify("desk_added")
        return desk

    def move_desk(self, desk_id: int, x: float, y: float) -> Tuple[int, int]:
        desk = self.layout.require(desk_id)
        before = (desk.x, desk.y)
        position = self.layout.move_desk(desk_id, x, y)
        if position != before:
            self._notify("desk_moved")
        return position

    def remove_desk(self, desk_id: int) -> List[uuid.UUID]:
        released = self.layout.remove_desk(desk_id)
        self.seating.release(released)
        self._notify("desk_removed")
        return released

    def assign(self, student_id: uuid.UUID, desk_id: int, drop_side: Optional[str] = None) -> bool:
        assigned = self.seating.assign(student_id, desk_id, drop_side)
        if assigned:
            self._notify("seat_assigned")
        return assigned

    def unassign(self, student_id: uuid.UUID) -> bool:
        self.roster.require(student_id)
        removed = self.seating.unassign(student_id)
        if removed:
            self._notify("seat_unassigned")
        return removed

    def reset_all_seats(self) -> None:
        """Action « réinitialiser tous les places » : vide les bancs et les compteurs."""
        released = self.seating.reset_all()
        self.counters.clear()
        logger.info("Plan réinitialisé : %d élève(s) renvoyé(s) dans la liste", released)
        self._notify("seats_reset")

    # ------------------------------------------------------------
    # Compteurs (notation rapide)
    # ------------------------------------------------------------

    def counter(self, student_id: uuid.UUID) -> int:
        return self.counters.get(student_id, 0)

    def increment_counter(self, student_id: uuid.UUID) -> int:
        return self._change_counter(student_id, 1)

    def decrement_counter(self, student_id: uuid.UUID) -> int:
        return self._change_counter(student_id, -1)

    def apply_counter_action(self, student_id: uuid.UUID, action: Optional[CounterAction]) -> int:
        """Applique l'action issue du geste appui court / appui long."""
        if action is CounterAction.INCREMENT:
            return self.increment_counter(student_id)
        if action is CounterAction.DECREMENT:
            return self.decrement_counter(student_id)
        return self.counter(student_id)

    def _change_counter(self, student_id: uuid.UUID, delta: int) -> int:
        self.roster.require(student_id)
        self.counters[student_id] = self.counter(student_id) + delta
        self._notify("counter_changed")
        return self.counters[student_id]

    def reset_counters(self) -> None:
        self.counters.clear()
        self._notify("counters_reset")

    def quick_grade(self, student_id: uuid.UUID) -> float:
        return quick_score_grade(self.counter(student_id), self.starting_grade)

    def calculate_grade(self, student_id: uuid.UUID) -> str:
        """Note dérivée du compteur, formatée à une décimale (ex. « 2.5 »)."""
        return format_grade(self.quick_grade(student_id))

    def quick_grade_band(self, student_id: uuid.UUID) -> int:
        return grade_band(self.quick_grade(student_id))

    # ------------------------------------------------------------
    # Présences et retards
    # ------------------------------------------------------------

    def set_absent(self, student_id: uuid.UUID, column: str, absent: bool) -> None:
        self.roster.require(student_id)
        self.grading.require_column(column)
        self.ledger.set_absent(student_id, column, absent)
        self._notify("absence_changed")

    def set_lateness(self, student_id: uuid.UUID, column: str, level: int) -> None:
        self.roster.require(student_id)
        self.grading.require_column(column)
        self.ledger.set_lateness(student_id, column, level)
        self._notify("lateness_changed")

    def reset_lateness(self) -> None:
        self.ledger.reset_lateness()
        self._notify("lateness_reset")

    def is_absent(self, student_id: uuid.UUID, column: str) -> bool:
        return self.ledger.is_absent(student_id, column)

    def current_lateness_level(self, student_id: uuid.UUID, today: Optional[date] = None) -> int:
        return self.ledger.current_lateness_level(student_id, today)

    def count_late(self, student_id: uuid.UUID) -> int:
        return self.ledger.count_late(student_id)

    def count_absent(self, student_id: uuid.UUID) -> int:
        return self.ledger.count_absent(student_id)

    # ------------------------------------------------------------
    # Notes et périodes
    # ------------------------------------------------------------

    @property
    def columns(self) -> List[str]:
        return list(self.grading.columns)

    @property
    def periods(self) -> List[Period]:
        return list(self.grading.periods)

    @property
    def active_period_id(self) -> Optional[int]:
        return self.grading.active_period_id

    def set_grade(self, student_id: uuid.UUID, column: str, value: Any) -> float:
        self.roster.require(student_id)
        self.grading.require_column(column)
        grade = self.ledger.set_grade(student_id, column, value)
        self._notify("grade_changed")
        return grade

    def clear_grade(self, student_id: uuid.UUID, column: str) -> None:
        self.roster.require(student_id)
        self.grading.require_column(column)
        self.ledger.clear_grade(student_id, column)
        self._notify("grade_changed")

    def add_column(self, name: str) -> Period:
        """
        Ajoute une colonne de notation. Les élèves placés reçoivent leur note
        de compteur ; les autres sont notés absents si la règle est active.
        """
        period = self.grading.add_column(name)
        column = period.columns[-1]
        for student in self.roster.all():
            if self.is_seated(student.id):
                self.ledger.grades.set(student.id, column, self.quick_grade(student.id))
            elif self.absent_if_unseated:
                self.ledger.set_absent(student.id, column, True)
        logger.info("Colonne '%s' ajoutée à la période '%s'", column, period.name)
        self._notify("column_added")
        return period

    def rename_column(self, old: str, new: str) -> None:
        self.grading.rename_column(old, new)
        self._notify("column_renamed")

    def delete_column(self, name: str) -> None:
        self.grading.delete_column(name)
        self._notify("column_deleted")

    def period_grade(self, student_id: uuid.UUID, period_id: int) -> Optional[float]:
        return self.grading.period_grade(student_id, period_id)

    def overall_average(self, student_id: uuid.UUID) -> Optional[float]:
        return self.grading.overall_average(student_id)

    # ------------------------------------------------------------
    # Réglages
    # ------------------------------------------------------------

    def set_starting_grade(self, grade: float) -> None:
        if not MIN_GRADE <= grade <= MAX_GRADE:
            raise ValueError(f"La note de départ doit être comprise entre {MIN_GRADE} et {MAX_GRADE}.")
        self.starting_grade = grade
        self._notify("settings_changed")

    def set_show_grades(self, show: bool) -> None:
        self.show_grades = show
        self._notify("settings_changed")

    def toggle_show_grades(self) -> bool:
        self.set_show_grades(not self.show_grades)
        return self.show_grades

    def set_period_length(self, length: int) -> None:
        self.grading.set_period_length(length)
        self._notify("settings_changed")

    def set_absent_if_unseated(self, enabled: bool) -> None:
        self.absent_if_unseated = enabled
        self._notify("settings_changed")

    # ------------------------------------------------------------
    # Sérialisation
    # ------------------------------------------------------------

    def to_snapshot(self) -> ClassSnapshot:
        return ClassSnapshot(
            starting_grade=self.starting_grade,
            show_grades=self.show_grades,
            period_length=self.grading.period_length,
            absent_if_unseated=self.absent_if_unseated,
            canvas_width=self.layout.canvas_width,
            canvas_height=self.layout.canvas_height,
            students=[s.model_copy(deep=True) for s in self.roster.all()],
            desks=[d.model_copy(deep=True) for d in self.layout.all()],
            counters=list(self.counters.items()),
            grades=self.ledger.grades.flatten(),
            absences=self.ledger.absences.flatten(),
            lateness=self.ledger.lateness.flatten(),
            hidden_grades=self.ledger.hidden_grades.flatten(),
            columns=list(self.grading.columns),
            periods=[p.model_copy(deep=True) for p in self.grading.periods],
            active_period_id=self.grading.active_period_id,
        )

    @classmethod
    def from_snapshot(cls, snapshot: ClassSnapshot) -> "ClassSession":
        session = cls(
            starting_grade=snapshot.starting_grade,
            period_length=snapshot.period_length,
            absent_if_unseated=snapshot.absent_if_unseated,
            show_grades=snapshot.show_grades,
            canvas_width=snapshot.canvas_width,
            canvas_height=snapshot.canvas_height,
        )
        session.roster = Roster([s.model_copy(deep=True) for s in snapshot.students])
        session.layout = DeskLayout(
            snapshot.canvas_width,
            snapshot.canvas_height,
            [d.model_copy(deep=True) for d in snapshot.desks],
        )
        session.seating = AssignmentEngine(session.roster, session.layout)
        session.ledger = AttendanceLedger(
            grades=NestedTable.unflatten(snapshot.grades),
            absences=NestedTable.unflatten(snapshot.absences),
            lateness=NestedTable.unflatten(snapshot.lateness),
            hidden_grades=NestedTable.unflatten(snapshot.hidden_grades),
        )
        session.grading = GradingEngine(
            session.ledger,
            columns=snapshot.columns,
            periods=[p.model_copy(deep=True) for p in snapshot.periods],
            active_period_id=snapshot.active_period_id,
            period_length=snapshot.period_length,
        )
        session.counters = dict(snapshot.counters)
        return session
