"""
Tests unitaires pour le service de gestion des classes.
"""

import uuid
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError

from app.core.snapshot import ClassSnapshot
from app.models.school_class import SchoolClass
from app.schemas.school_class import ClassCreate, ClassUpdate
from app.services.class_service import (
    SAMPLE_STUDENTS,
    _to_response,
    create_class,
    create_sample_class,
    delete_class,
    get_class,
    update_class,
)


# --- Helpers ---

def make_class(name="5a", state=None):
    return SchoolClass(
        id=uuid.uuid4(),
        name=name,
        starting_grade=4.0,
        show_grades=False,
        period_length=5,
        absent_if_unseated=True,
        state=state,
        created_at=datetime.now(),
        updated_at=datetime.now(),
    )


def make_db_mock(school_class=None):
    db = MagicMock()
    db.get.return_value = school_class
    db.execute.return_value.scalars.return_value.all.return_value = []
    return db


# --- Validation des schémas ---

def test_class_create_nom_vide_rejete():
    with pytest.raises(ValidationError):
        ClassCreate(name="   ")


def test_class_create_nom_valide():
    c = ClassCreate(name="  5a  ")
    assert c.name == "5a"  # strip appliqué


def test_class_create_note_de_depart_hors_echelle():
    with pytest.raises(ValidationError):
        ClassCreate(name="5a", starting_grade=7.0)


def test_class_update_longueur_de_periode_nulle():
    with pytest.raises(ValidationError):
        ClassUpdate(period_length=0)


# --- create_class ---

def test_create_class_succes():
    db = make_db_mock()
    with patch("app.services.class_service._to_response") as mock_resp:
        mock_resp.return_value = MagicMock()
        result = create_class(db, ClassCreate(name="5a"))
        db.add.assert_called_once()
        db.commit.assert_called_once()
        assert result is not None


def test_create_class_reglages_par_defaut():
    db = make_db_mock()
    with patch("app.services.class_service._to_response"):
        create_class(db, ClassCreate(name="5a", period_length=3))
    created = db.add.call_args[0][0]
    assert created.starting_grade == 4.0
    assert created.period_length == 3
    assert created.absent_if_unseated is True
    assert ClassSnapshot.model_validate(created.state).students == []


def test_create_class_nom_duplique():
    db = make_db_mock()
    db.commit.side_effect = IntegrityError("duplicate", None, None)
    with pytest.raises(ValueError, match="existe déjà"):
        create_class(db, ClassCreate(name="5a"))
    db.rollback.assert_called_once()


def test_create_sample_class_cinq_eleves_non_places():
    db = make_db_mock()
    with patch("app.services.class_service._to_response"):
        create_sample_class(db)
    created = db.add.call_args[0][0]
    snapshot = ClassSnapshot.model_validate(created.state)
    assert [(s.first_name, s.last_name) for s in snapshot.students] == SAMPLE_STUDENTS
    assert snapshot.desks == []


# --- get_class ---

def test_get_class_inexistante():
    db = make_db_mock(school_class=None)
    assert get_class(db, uuid.uuid4()) is None


def test_get_class_existante_compte_eleves_et_bancs():
    state = ClassSnapshot(
        students=[{"first_name": "Anna", "last_name": "Schmidt"}],
        desks=[{"id": 1, "type": "single"}],
    ).model_dump(mode="json")
    c = make_class(state=state)
    result = get_class(make_db_mock(school_class=c), c.id)
    assert result.nb_students == 1
    assert result.nb_desks == 1


def test_to_response_etat_absent():
    response = _to_response(make_class(state=None))
    assert response.nb_students == 0
    assert response.nb_desks == 0


# --- update_class ---

def test_update_class_inexistante():
    db = make_db_mock(school_class=None)
    assert update_class(db, uuid.uuid4(), ClassUpdate(name="6b")) is None
    db.commit.assert_not_called()


def test_update_class_champs_fournis_uniquement():
    c = make_class()
    db = make_db_mock(school_class=c)
    result = update_class(db, c.id, ClassUpdate(starting_grade=3.5))
    assert c.starting_grade == 3.5
    assert c.name == "5a"
    assert result.starting_grade == 3.5


def test_update_class_nom_duplique():
    c = make_class()
    db = make_db_mock(school_class=c)
    db.commit.side_effect = IntegrityError("duplicate", None, None)
    with pytest.raises(ValueError, match="existe déjà"):
        update_class(db, c.id, ClassUpdate(name="6b"))


# --- delete_class ---

def test_delete_class_inexistante():
    db = make_db_mock(school_class=None)
    assert delete_class(db, uuid.uuid4()) is False
    db.commit.assert_not_called()


def test_delete_class_existante():
    c = make_class()
    db = make_db_mock(school_class=c)
    assert delete_class(db, c.id) is True
    db.delete.assert_called_once_with(c)
    db.commit.assert_called_once()
