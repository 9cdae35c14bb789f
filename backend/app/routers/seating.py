"""
Router pour le plan de classe : élèves, bancs, affectations, compteurs.
Toutes les mutations renvoient la vue complète du plan.
"""

import uuid
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.database import get_db
from app.schemas.seating import DeskCreate, DeskMove, SeatAssign, SeatingPlanResponse, StudentCreate, StudentUpdate
from app.services import seating_service

router = APIRouter(prefix="/api/v1/classes/{class_id}", tags=["Plan de classe"])


def _run(call: Callable[[], Optional[SeatingPlanResponse]]) -> SeatingPlanResponse:
    try:
        result = call()
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="Classe introuvable.")
    return result


@router.get("/seating", response_model=SeatingPlanResponse, summary="Plan de classe")
def get_seating_plan(class_id: uuid.UUID, db: Session = Depends(get_db)):
    """Retourne les bancs, les élèves (placés ou non) et les dimensions du canevas."""
    return _run(lambda: seating_service.get_seating_plan(db, class_id))


# --- Élèves ---

@router.post("/students", response_model=SeatingPlanResponse, status_code=201, summary="Ajouter un élève")
def add_student(class_id: uuid.UUID, data: StudentCreate, db: Session = Depends(get_db)):
    return _run(lambda: seating_service.add_student(db, class_id, data))


@router.put("/students/{student_id}", response_model=SeatingPlanResponse, summary="Modifier un élève")
def update_student(class_id: uuid.UUID, student_id: uuid.UUID, data: StudentUpdate, db: Session = Depends(get_db)):
    return _run(lambda: seating_service.update_student(db, class_id, student_id, data))


@router.delete("/students/{student_id}", response_model=SeatingPlanResponse, summary="Supprimer un élève")
def delete_student(class_id: uuid.UUID, student_id: uuid.UUID, db: Session = Depends(get_db)):
    """Supprime l'élève ainsi que sa place, son compteur, ses notes, absences et retards."""
    return _run(lambda: seating_service.delete_student(db, class_id, student_id))


# --- Bancs ---

@router.post("/desks", response_model=SeatingPlanResponse, status_code=201, summary="Ajouter un banc")
def add_desk(class_id: uuid.UUID, data: DeskCreate, db: Session = Depends(get_db)):
    """Place un banc simple ou double à la première position libre (409 si le canevas est plein)."""
    return _run(lambda: seating_service.add_desk(db, class_id, data))


@router.put("/desks/{desk_id}/position", response_model=SeatingPlanResponse, summary="Déplacer un banc")
def move_desk(class_id: uuid.UUID, desk_id: int, data: DeskMove, db: Session = Depends(get_db)):
    """Aligne la position sur la grille ; `applied` vaut false si le banc en chevauche un autre."""
    return _run(lambda: seating_service.move_desk(db, class_id, desk_id, data))


@router.delete("/desks/{desk_id}", response_model=SeatingPlanResponse, summary="Supprimer un banc")
def remove_desk(class_id: uuid.UUID, desk_id: int, db: Session = Depends(get_db)):
    """Supprime le banc ; ses élèves retournent dans la liste."""
    return _run(lambda: seating_service.remove_desk(db, class_id, desk_id))


# --- Affectations ---

@router.post("/seats", response_model=SeatingPlanResponse, summary="Placer un élève")
def assign_seat(class_id: uuid.UUID, data: SeatAssign, db: Session = Depends(get_db)):
    """Place un élève sur un banc. Banc plein : rien ne change et `applied` vaut false."""
    return _run(lambda: seating_service.assign_seat(db, class_id, data))


@router.post("/seats/reset", response_model=SeatingPlanResponse, summary="Réinitialiser toutes les places")
def reset_seats(class_id: uuid.UUID, db: Session = Depends(get_db)):
    """Renvoie tous les élèves dans la liste et remet les compteurs à zéro."""
    return _run(lambda: seating_service.reset_seats(db, class_id))


@router.delete("/seats/{student_id}", response_model=SeatingPlanResponse, summary="Retirer un élève de son banc")
def unassign_seat(class_id: uuid.UUID, student_id: uuid.UUID, db: Session = Depends(get_db)):
    return _run(lambda: seating_service.unassign_seat(db, class_id, student_id))


# --- Compteurs ---

@router.post("/counters/reset", response_model=SeatingPlanResponse, summary="Remettre les compteurs à zéro")
def reset_counters(class_id: uuid.UUID, db: Session = Depends(get_db)):
    return _run(lambda: seating_service.reset_counters(db, class_id))


@router.post("/counters/{student_id}/increment", response_model=SeatingPlanResponse, summary="Incrémenter le compteur")
def increment_counter(class_id: uuid.UUID, student_id: uuid.UUID, db: Session = Depends(get_db)):
    return _run(lambda: seating_service.increment_counter(db, class_id, student_id))


@router.post("/counters/{student_id}/decrement", response_model=SeatingPlanResponse, summary="Décrémenter le compteur")
def decrement_counter(class_id: uuid.UUID, student_id: uuid.UUID, db: Session = Depends(get_db)):
    return _run(lambda: seating_service.decrement_counter(db, class_id, student_id))
