"""
Schémas Pydantic pour les classes scolaires.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ClassCreate(BaseModel):
    name: str
    starting_grade: Optional[float] = Field(default=None, ge=1.0, le=6.0)
    show_grades: bool = False
    period_length: Optional[int] = Field(default=None, ge=1)
    absent_if_unseated: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Le nom de la classe ne peut pas être vide.")
        return v.strip()


class ClassUpdate(BaseModel):
    name: Optional[str] = None
    starting_grade: Optional[float] = Field(default=None, ge=1.0, le=6.0)
    show_grades: Optional[bool] = None
    period_length: Optional[int] = Field(default=None, ge=1)
    absent_if_unseated: Optional[bool] = None

    @field_validator("name")
    @classmethod
    def name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            raise ValueError("Le nom de la classe ne peut pas être vide.")
        return v.strip() if v else v


class ClassResponse(BaseModel):
    id: uuid.UUID
    name: str
    starting_grade: float
    show_grades: bool
    period_length: int
    absent_if_unseated: bool
    nb_students: int
    nb_desks: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
