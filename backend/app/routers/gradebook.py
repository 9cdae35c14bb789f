"""
Router pour le carnet de notes : colonnes, notes, absences, retards.
Toutes les mutations renvoient le carnet complet avec les moyennes recalculées.
"""

import uuid
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.database import get_db
from app.schemas.gradebook import AbsenceSet, ColumnCreate, ColumnRename, GradebookResponse, GradeSet, LatenessSet
from app.services import gradebook_service

router = APIRouter(prefix="/api/v1/classes/{class_id}", tags=["Carnet de notes"])


def _run(call: Callable[[], Optional[GradebookResponse]], rejected_status: int = 409) -> GradebookResponse:
    try:
        result = call()
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=rejected_status, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="Classe introuvable.")
    return result


@router.get("/gradebook", response_model=GradebookResponse, summary="Carnet de notes")
def get_gradebook(class_id: uuid.UUID, db: Session = Depends(get_db)):
    """Retourne colonnes, périodes, notes, absences, retards et moyennes de chaque élève."""
    return _run(lambda: gradebook_service.get_gradebook(db, class_id))


# --- Colonnes ---

@router.post("/columns", response_model=GradebookResponse, status_code=201, summary="Ajouter une colonne")
def add_column(class_id: uuid.UUID, data: ColumnCreate, db: Session = Depends(get_db)):
    """
    Ajoute une colonne (date) à la période active ou ouvre une nouvelle période.
    Les élèves placés reçoivent leur note de compteur, les autres sont notés absents.
    Nom déjà utilisé → 409.
    """
    return _run(lambda: gradebook_service.add_column(db, class_id, data))


@router.put("/columns/{name:path}", response_model=GradebookResponse, summary="Renommer une colonne")
def rename_column(class_id: uuid.UUID, name: str, data: ColumnRename, db: Session = Depends(get_db)):
    return _run(lambda: gradebook_service.rename_column(db, class_id, name, data))


@router.delete("/columns/{name:path}", response_model=GradebookResponse, summary="Supprimer une colonne")
def delete_column(class_id: uuid.UUID, name: str, db: Session = Depends(get_db)):
    """Supprime la colonne et ses entrées ; une période devenue vide est supprimée."""
    return _run(lambda: gradebook_service.delete_column(db, class_id, name))


# --- Saisies ---

@router.put("/grades", response_model=GradebookResponse, summary="Saisir une note")
def set_grade(class_id: uuid.UUID, data: GradeSet, db: Session = Depends(get_db)):
    """Note entre 1.0 et 6.0 ; refusée (400) si invalide ou si l'élève est absent."""
    return _run(lambda: gradebook_service.set_grade(db, class_id, data), rejected_status=400)


@router.put("/absences", response_model=GradebookResponse, summary="Marquer une absence")
def set_absence(class_id: uuid.UUID, data: AbsenceSet, db: Session = Depends(get_db)):
    """L'absence masque la note existante ; lever l'absence la restaure."""
    return _run(lambda: gradebook_service.set_absence(db, class_id, data))


@router.put("/lateness", response_model=GradebookResponse, summary="Marquer un retard")
def set_lateness(class_id: uuid.UUID, data: LatenessSet, db: Session = Depends(get_db)):
    """Niveau 0 efface le retard ; un retard lève l'absence. Niveau invalide → 400."""
    return _run(lambda: gradebook_service.set_lateness(db, class_id, data), rejected_status=400)


@router.post("/lateness/reset", response_model=GradebookResponse, summary="Effacer tous les retards")
def reset_lateness(class_id: uuid.UUID, db: Session = Depends(get_db)):
    return _run(lambda: gradebook_service.reset_lateness(db, class_id))
