"""
Router pour la gestion des classes et de leur état persisté.
"""

import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.core.snapshot import ClassSnapshot
from app.database import get_db
from app.schemas.school_class import ClassCreate, ClassResponse, ClassUpdate
from app.services import class_service, class_state_service

router = APIRouter(prefix="/api/v1/classes", tags=["Classes"])


@router.post("", response_model=ClassResponse, status_code=201, summary="Créer une classe")
def create_class(data: ClassCreate, db: Session = Depends(get_db)):
    """Crée une nouvelle classe avec un nom unique et un plan vide."""
    try:
        return class_service.create_class(db, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/sample", response_model=ClassResponse, status_code=201, summary="Créer la classe d'exemple")
def create_sample_class(db: Session = Depends(get_db)):
    """Crée la classe d'exemple avec cinq élèves (premier lancement)."""
    try:
        return class_service.create_sample_class(db)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.get("", response_model=List[ClassResponse], summary="Lister les classes")
def list_classes(db: Session = Depends(get_db)):
    """Retourne toutes les classes avec leur nombre d'élèves et de bancs."""
    return class_service.get_classes(db)


@router.get("/{class_id}", response_model=ClassResponse, summary="Détail d'une classe")
def get_class(class_id: uuid.UUID, db: Session = Depends(get_db)):
    school_class = class_service.get_class(db, class_id)
    if school_class is None:
        raise HTTPException(status_code=404, detail="Classe introuvable.")
    return school_class


@router.put("/{class_id}", response_model=ClassResponse, summary="Modifier une classe")
def update_class(class_id: uuid.UUID, data: ClassUpdate, db: Session = Depends(get_db)):
    """Met à jour le nom et les réglages (note de départ, affichage des notes, longueur de période)."""
    try:
        result = class_service.update_class(db, class_id, data)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    if result is None:
        raise HTTPException(status_code=404, detail="Classe introuvable.")
    return result


@router.delete("/{class_id}", status_code=204, summary="Supprimer une classe")
def delete_class(class_id: uuid.UUID, db: Session = Depends(get_db)):
    """Supprime une classe définitivement, avec son plan et son carnet de notes."""
    success = class_service.delete_class(db, class_id)
    if not success:
        raise HTTPException(status_code=404, detail="Classe introuvable.")


# --- État complet (stockage local ↔ serveur) ---

@router.get("/{class_id}/state", response_model=ClassSnapshot, summary="Exporter l'état d'une classe")
def get_state(class_id: uuid.UUID, db: Session = Depends(get_db)):
    snapshot = class_state_service.get_state(db, class_id)
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Classe introuvable.")
    return snapshot


@router.put("/{class_id}/state", response_model=ClassSnapshot, summary="Remplacer l'état d'une classe")
def replace_state(class_id: uuid.UUID, data: ClassSnapshot, db: Session = Depends(get_db)):
    """Remplace l'état complet (élèves, bancs, notes, présences, périodes) par l'instantané fourni."""
    try:
        snapshot = class_state_service.replace_state(db, class_id, data)
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if snapshot is None:
        raise HTTPException(status_code=404, detail="Classe introuvable.")
    return snapshot
