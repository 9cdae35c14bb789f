"""
Registre des présences, retards et notes par colonne (date).

Règles de réconciliation :
- une note et une absence ne coexistent jamais pour le même (élève, colonne) :
  marquer l'absence déplace la note dans la table des notes masquées, lever
  l'absence la restaure ;
- un retard > 0 et une absence s'excluent mutuellement.
"""

import uuid
import logging
from datetime import date, datetime
from typing import Any, Optional

from app.core.tables import NestedTable

logger = logging.getLogger(__name__)

MIN_GRADE = 1.0
MAX_GRADE = 6.0
LATENESS_LEVELS = (5, 10, 15, 20, 25, 30, 35, 40, 45)  # minutes

_DATE_FORMATS = ("%Y-%m-%d", "%d.%m.%Y", "%d.%m.%y")


def parse_column_date(label: str, today: Optional[date] = None) -> Optional[date]:
    """
    Interprète un libellé de colonne comme une date.
    Formats acceptés : 2025-03-14, 14.03.2025, 14.03.25, 14.03. (année courante).
    Retourne None si le libellé n'est pas une date.
    """
    text = label.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue

    if text.endswith(".") and text.count(".") == 2:
        year = (today or date.today()).year
        try:
            return datetime.strptime(f"{text}{year}", "%d.%m.%Y").date()
        except ValueError:
            return None
    return None


def validate_grade(value: Any) -> float:
    """
    Valide une saisie manuelle de note : numérique (virgule décimale acceptée)
    et comprise dans [1.0, 6.0]. Lève ValueError sinon.
    """
    if isinstance(value, bool):
        raise ValueError("La note doit être un nombre.")
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
    try:
        grade = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Note invalide : {value!r}.")
    if grade != grade or not MIN_GRADE <= grade <= MAX_GRADE:
        raise ValueError(f"La note doit être comprise entre {MIN_GRADE} et {MAX_GRADE}.")
    return grade


class AttendanceLedger:
    def __init__(
        self,
        grades: Optional[NestedTable] = None,
        absences: Optional[NestedTable] = None,
        lateness: Optional[NestedTable] = None,
        hidden_grades: Optional[NestedTable] = None,
    ):
        self.grades = grades if grades is not None else NestedTable()
        self.absences = absences if absences is not None else NestedTable()
        self.lateness = lateness if lateness is not None else NestedTable()
        self.hidden_grades = hidden_grades if hidden_grades is not None else NestedTable()

    # --- Présences ---

    def is_absent(self, student_id: uuid.UUID, column: str) -> bool:
        return bool(self.absences.get(student_id, column, False))

    def set_absent(self, student_id: uuid.UUID, column: str, absent: bool) -> None:
        if absent:
            self.absences.set(student_id, column, True)
            if self.grades.has(student_id, column):
                self.hidden_grades.set(student_id, column, self.grades.pop(student_id, column))
            self.lateness.pop(student_id, column)
        else:
            self.absences.pop(student_id, column)
            if self.hidden_grades.has(student_id, column):
                self.grades.set(student_id, column, self.hidden_grades.pop(student_id, column))

    # --- Retards ---

    def set_lateness(self, student_id: uuid.UUID, column: str, level: int) -> None:
        """Niveau 0 efface le retard ; un élève en retard est présent."""
        if level == 0:
            self.lateness.pop(student_id, column)
            return
        if level not in LATENESS_LEVELS:
            raise ValueError(f"Niveau de retard invalide : {level}. Valeurs acceptées : {LATENESS_LEVELS}")
        self.lateness.set(student_id, column, level)
        self.set_absent(student_id, column, False)

    def lateness_level(self, student_id: uuid.UUID, column: str) -> int:
        return self.lateness.get(student_id, column, 0)

    def current_lateness_level(self, student_id: uuid.UUID, today: Optional[date] = None) -> int:
        """
        Niveau affiché sur le badge de l'élève : celui du jour s'il existe,
        sinon celui de l'entrée datée la plus récente, sinon 0.
        """
        today = today or date.today()
        dated = []
        for column, level in self.lateness.row(student_id).items():
            day = parse_column_date(column, today)
            if day is None:
                continue
            if day == today:
                return level
            dated.append((day, level))

        if not dated:
            return 0
        dated.sort(key=lambda entry: entry[0], reverse=True)
        return dated[0][1]

    def count_late(self, student_id: uuid.UUID) -> int:
        return sum(1 for level in self.lateness.row(student_id).values() if level > 0)

    def count_absent(self, student_id: uuid.UUID) -> int:
        return sum(1 for absent in self.absences.row(student_id).values() if absent)

    def reset_lateness(self) -> None:
        self.lateness.clear()

    # --- Notes ---

    def set_grade(self, student_id: uuid.UUID, column: str, value: Any) -> float:
        grade = validate_grade(value)
        if self.is_absent(student_id, column):
            raise ValueError("Impossible de noter un élève absent.")
        self.grades.set(student_id, column, grade)
        return grade

    def clear_grade(self, student_id: uuid.UUID, column: str) -> None:
        self.grades.pop(student_id, column)

    def grade(self, student_id: uuid.UUID, column: str) -> Optional[float]:
        return self.grades.get(student_id, column)

    # --- Cascades ---

    def drop_student(self, student_id: uuid.UUID) -> None:
        for table in (self.grades, self.absences, self.lateness, self.hidden_grades):
            table.drop_student(student_id)

    def drop_column(self, column: str) -> None:
        for table in (self.grades, self.absences, self.lateness, self.hidden_grades):
            table.drop_column(column)

    def rename_column(self, old: str, new: str) -> None:
        for table in (self.grades, self.absences, self.lateness, self.hidden_grades):
            table.rename_column(old, new)
