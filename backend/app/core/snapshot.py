"""
Instantané sérialisable de l'état complet d'une classe.

C'est le contrat avec la couche de stockage (stockage local ou API CRUD) :
les tables imbriquées sont aplaties en listes de paires, et
`ClassSession.from_snapshot(snapshot)` reconstruit l'état sans perte.
"""

import uuid
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from app.core.grading import DEFAULT_PERIOD_LENGTH, DEFAULT_STARTING_GRADE, Period
from app.core.layout import DEFAULT_CANVAS_HEIGHT, DEFAULT_CANVAS_WIDTH, Desk
from app.core.roster import Student

SNAPSHOT_VERSION = 1


class ClassSnapshot(BaseModel):
    version: int = SNAPSHOT_VERSION

    # Réglages et affichage
    starting_grade: float = DEFAULT_STARTING_GRADE
    show_grades: bool = False
    period_length: int = DEFAULT_PERIOD_LENGTH
    absent_if_unseated: bool = True
    canvas_width: int = DEFAULT_CANVAS_WIDTH
    canvas_height: int = DEFAULT_CANVAS_HEIGHT

    students: List[Student] = Field(default_factory=list)
    desks: List[Desk] = Field(default_factory=list)
    counters: List[Tuple[uuid.UUID, int]] = Field(default_factory=list)

    # Tables (élève → [(colonne, valeur)])
    grades: List[Tuple[uuid.UUID, List[Tuple[str, float]]]] = Field(default_factory=list)
    absences: List[Tuple[uuid.UUID, List[Tuple[str, bool]]]] = Field(default_factory=list)
    lateness: List[Tuple[uuid.UUID, List[Tuple[str, int]]]] = Field(default_factory=list)
    hidden_grades: List[Tuple[uuid.UUID, List[Tuple[str, float]]]] = Field(default_factory=list)

    columns: List[str] = Field(default_factory=list)
    periods: List[Period] = Field(default_factory=list)
    active_period_id: Optional[int] = None

    @model_validator(mode="after")
    def check_invariants(self) -> "ClassSnapshot":
        students = {s.id: s for s in self.students}
        seated: set = set()
        for desk in self.desks:
            if len(desk.students) > desk.capacity:
                raise ValueError(f"Le banc {desk.id} dépasse sa capacité.")
            for student_id in desk.students:
                if student_id not in students:
                    raise ValueError(f"Le banc {desk.id} référence un élève inconnu : {student_id}.")
                if student_id in seated:
                    raise ValueError(f"L'élève {student_id} est placé sur plusieurs bancs.")
                seated.add(student_id)
            sides = [students[sid].desk_position for sid in desk.students if students[sid].desk_position]
            if len(sides) != len(set(sides)):
                raise ValueError(f"Deux élèves occupent le même côté du banc {desk.id}.")

        absent = {
            (student_id, column)
            for student_id, row in self.absences
            for column, value in row
            if value
        }
        for student_id, row in self.grades:
            for column, _ in row:
                if (student_id, column) in absent:
                    raise ValueError(f"L'élève {student_id} a une note et une absence pour '{column}'.")

        in_period: set = set()
        for period in self.periods:
            if len(period.columns) > period.max_columns:
                raise ValueError(f"La période '{period.name}' dépasse sa longueur.")
            for column in period.columns:
                if column in in_period:
                    raise ValueError(f"La colonne '{column}' appartient à plusieurs périodes.")
                in_period.add(column)
        return self
