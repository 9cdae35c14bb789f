"""
Schémas Pydantic pour le plan de classe : élèves, bancs, affectations.
"""

import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel, field_validator

MAX_PHOTO_SIZE = 2 * 1024 * 1024  # Data URI base64


def _check_photo(v: Optional[str]) -> Optional[str]:
    if v is not None and len(v) > MAX_PHOTO_SIZE:
        raise ValueError("Photo trop volumineuse (2 Mo maximum).")
    return v


class StudentCreate(BaseModel):
    """Corps de requête pour ajouter un élève à la classe."""
    first_name: str
    last_name: str
    photo: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip()

    @field_validator("photo")
    @classmethod
    def photo_size(cls, v: Optional[str]) -> Optional[str]:
        return _check_photo(v)


class StudentUpdate(BaseModel):
    """Mise à jour partielle d'un élève ; les champs absents ne changent pas."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    photo: Optional[str] = None

    @field_validator("first_name", "last_name")
    @classmethod
    def not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le champ ne peut pas être vide.")
        return v.strip() if v else v

    @field_validator("photo")
    @classmethod
    def photo_size(cls, v: Optional[str]) -> Optional[str]:
        return _check_photo(v)


class DeskCreate(BaseModel):
    type: Literal["single", "double"] = "single"


class DeskMove(BaseModel):
    x: float
    y: float


class SeatAssign(BaseModel):
    """Dépôt d'un élève sur un banc (glisser-déposer)."""
    student_id: uuid.UUID
    desk_id: int
    drop_side: Optional[Literal["left", "right", "center"]] = None


class StudentView(BaseModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    initials: str
    photo: Optional[str]
    desk_id: Optional[int]
    desk_position: Optional[str]
    counter: int
    quick_grade: str          # Note dérivée du compteur, ex. "3.5"
    grade_band: int           # Tranche de couleur 1..6
    lateness_level: int       # Badge de retard (0 = aucun)


class DeskView(BaseModel):
    id: int
    type: str
    x: int
    y: int
    capacity: int
    students: List[uuid.UUID]


class SeatingPlanResponse(BaseModel):
    """Vue complète du plan de classe, renvoyée après chaque modification."""
    class_id: uuid.UUID
    canvas_width: int
    canvas_height: int
    show_grades: bool
    starting_grade: float
    long_press_ms: int        # Seuil de l'appui long (décrément du compteur)
    students: List[StudentView]
    desks: List[DeskView]
    unassigned: List[uuid.UUID]
    applied: bool = True      # False si l'opération a été ignorée (banc plein, collision)
    saved: bool = True        # False si l'enregistrement a échoué (état non persisté)
