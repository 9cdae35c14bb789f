"""
Registre des élèves d'une classe (identité et attributs d'affichage).
"""

import uuid
import logging
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from app.core.errors import NotFoundError

logger = logging.getLogger(__name__)

DeskSide = Literal["left", "right"]


class Student(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    first_name: str
    last_name: str
    photo: Optional[str] = None              # Data URI (base64) ou URL
    desk_position: Optional[DeskSide] = None  # Significatif uniquement sur un banc double

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def initials(self) -> str:
        """Initiales affichées à la place de la photo."""
        return (self.first_name[:1] + self.last_name[:1]).upper()


def _clean_name(value: str) -> str:
    if value is None or not value.strip():
        raise ValueError("Le prénom et le nom ne peuvent pas être vides.")
    return value.strip()


class Roster:
    """Élèves indexés par ID, dans l'ordre d'ajout."""

    def __init__(self, students: Optional[List[Student]] = None):
        self._students: Dict[uuid.UUID, Student] = {}
        for student in students or []:
            self._students[student.id] = student

    def add(
        self,
        first_name: str,
        last_name: str,
        photo: Optional[str] = None,
        student_id: Optional[uuid.UUID] = None,
    ) -> Student:
        student = Student(
            id=student_id or uuid.uuid4(),
            first_name=_clean_name(first_name),
            last_name=_clean_name(last_name),
            photo=photo,
        )
        if student.id in self._students:
            raise ValueError(f"Un élève avec l'ID {student.id} existe déjà.")
        self._students[student.id] = student
        logger.debug("Élève ajouté : %s (%s)", student.full_name, student.id)
        return student

    def edit(
        self,
        student_id: uuid.UUID,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        photo: Optional[str] = None,
    ) -> Student:
        """Met à jour les champs fournis ; les champs à None ne sont pas modifiés."""
        student = self.require(student_id)
        if first_name is not None:
            student.first_name = _clean_name(first_name)
        if last_name is not None:
            student.last_name = _clean_name(last_name)
        if photo is not None:
            student.photo = photo
        return student

    def remove(self, student_id: uuid.UUID) -> Student:
        student = self.require(student_id)
        del self._students[student_id]
        return student

    def get(self, student_id: uuid.UUID) -> Optional[Student]:
        return self._students.get(student_id)

    def require(self, student_id: uuid.UUID) -> Student:
        student = self._students.get(student_id)
        if student is None:
            raise NotFoundError(f"Élève {student_id} introuvable.")
        return student

    def all(self) -> List[Student]:
        return list(self._students.values())

    def ids(self) -> List[uuid.UUID]:
        return list(self._students)

    def __contains__(self, student_id: object) -> bool:
        return student_id in self._students

    def __len__(self) -> int:
        return len(self._students)
