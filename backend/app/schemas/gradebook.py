"""
Schémas Pydantic pour le carnet de notes : colonnes, périodes, présences.
"""

import uuid
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, field_validator


class ColumnCreate(BaseModel):
    name: str

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom de la colonne ne peut pas être vide.")
        return v.strip()


class ColumnRename(BaseModel):
    new_name: str

    @field_validator("new_name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom de la colonne ne peut pas être vide.")
        return v.strip()


class GradeSet(BaseModel):
    """Saisie manuelle d'une note ; `value` à null efface la note."""
    student_id: uuid.UUID
    column: str
    value: Optional[Union[float, str]] = None


class AbsenceSet(BaseModel):
    student_id: uuid.UUID
    column: str
    absent: bool


class LatenessSet(BaseModel):
    student_id: uuid.UUID
    column: str
    level: int   # 0 efface le retard, sinon 5, 10, ..., 45 minutes


class PeriodView(BaseModel):
    id: int
    name: str
    columns: List[str]
    max_columns: int
    active: bool
    closed: bool


class GradebookRow(BaseModel):
    student_id: uuid.UUID
    first_name: str
    last_name: str
    grades: Dict[str, float]
    absences: List[str]
    lateness: Dict[str, int]
    period_grades: Dict[int, Optional[float]]
    overall_average: Optional[float]
    nb_late: int
    nb_absent: int
    lateness_level: int


class GradebookResponse(BaseModel):
    class_id: uuid.UUID
    columns: List[str]
    periods: List[PeriodView]
    active_period_id: Optional[int]
    rows: List[GradebookRow]
    saved: bool = True
