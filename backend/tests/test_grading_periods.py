"""
Tests unitaires pour les périodes de notation, les moyennes et la note de compteur.
"""

import math

import pytest

from app.core.grading import format_grade, grade_band, quick_score_grade, round_grade
from app.core.session import ClassSession


# --- Helpers ---

def make_session(period_length=3, names=("Anna",), seated=True):
    session = ClassSession(period_length=period_length)
    students = [session.add_student(n, "Test") for n in names]
    if seated:
        for student in students:
            desk = session.add_desk("single")
            session.assign(student.id, desk.id)
    return session, students


# --- Découpage en périodes ---

def test_scenario_periode_pleine_puis_nouvelle():
    session, _ = make_session(period_length=3)
    for name in ("Mo", "Di", "Mi"):
        session.add_column(name)

    assert len(session.periods) == 1
    first = session.periods[0]
    assert first.columns == ["Mo", "Di", "Mi"]
    assert first.is_full
    assert not first.active

    period = session.add_column("Do")
    assert len(session.periods) == 2
    assert period.columns == ["Do"]
    assert period.active
    assert session.active_period_id == period.id
    assert period.name == "Periode 2"


@pytest.mark.parametrize("n, k", [(1, 3), (3, 3), (7, 3), (10, 5), (4, 1)])
def test_nombre_de_periodes(n, k):
    session, _ = make_session(period_length=k)
    for i in range(n):
        session.add_column(f"C{i}")

    periods = session.periods
    assert len(periods) == math.ceil(n / k)
    assert all(len(p.columns) <= k for p in periods)
    assert all(len(p.columns) == k for p in periods[:-1])
    assert sum(len(p.columns) for p in periods) == n
    assert sum(1 for p in periods if p.active) <= 1


def test_colonne_en_double_refusee():
    session, _ = make_session()
    session.add_column("Mo")
    with pytest.raises(ValueError, match="existe déjà"):
        session.add_column("Mo")
    assert session.columns == ["Mo"]


def test_colonne_nom_vide_refuse():
    session, _ = make_session()
    with pytest.raises(ValueError):
        session.add_column("   ")


def test_add_column_note_de_compteur_pour_eleve_place():
    session, (a,) = make_session()
    session.increment_counter(a.id)
    session.increment_counter(a.id)
    session.add_column("Mo")
    assert session.ledger.grade(a.id, "Mo") == 3.0


def test_add_column_absent_si_non_place():
    session, (a,) = make_session(seated=False)
    session.add_column("Mo")
    assert session.is_absent(a.id, "Mo")
    assert session.ledger.grade(a.id, "Mo") is None


def test_add_column_regle_absence_desactivee():
    session, (a,) = make_session(seated=False)
    session.set_absent_if_unseated(False)
    session.add_column("Mo")
    assert not session.is_absent(a.id, "Mo")
    assert session.ledger.grade(a.id, "Mo") is None


def test_longueur_de_periode_modifiee_pour_les_suivantes():
    session, _ = make_session(period_length=2)
    session.add_column("A")
    session.set_period_length(4)
    session.add_column("B")
    session.add_column("C")
    assert [p.max_columns for p in session.periods] == [2, 4]
    with pytest.raises(ValueError):
        session.set_period_length(0)


# --- Moyennes ---

def test_scenario_moyenne_hors_absence():
    session, (s,) = make_session(period_length=3)
    for name in ("Mo", "Di", "Mi"):
        session.add_column(name)
    session.set_grade(s.id, "Mo", 2.0)
    session.set_absent(s.id, "Di", True)
    session.set_grade(s.id, "Mi", 3.0)

    period_id = session.periods[0].id
    assert session.period_grade(s.id, period_id) == 2.5


def test_moyenne_periode_absent_partout():
    session, (s,) = make_session(period_length=2, seated=False)
    session.add_column("Mo")
    session.add_column("Di")
    assert session.period_grade(s.id, session.periods[0].id) is None


def test_colonne_sans_note_ni_absence_ignoree():
    session, (s,) = make_session(period_length=3)
    session.add_column("Mo")
    session.add_column("Di")
    session.set_grade(s.id, "Mo", 2.0)
    session.clear_grade(s.id, "Di")
    assert session.period_grade(s.id, session.periods[0].id) == 2.0


def test_moyenne_arrondie_a_une_decimale():
    session, (s,) = make_session(period_length=3)
    for name, grade in (("Mo", 1.0), ("Di", 2.0), ("Mi", 2.0)):
        session.add_column(name)
        session.set_grade(s.id, name, grade)
    assert session.period_grade(s.id, session.periods[0].id) == 1.7


def test_moyenne_generale_periodes_de_meme_poids():
    session, (s,) = make_session(period_length=3)
    for name, grade in (("Mo", 2.0), ("Di", 2.0), ("Mi", 2.0), ("Do", 5.0)):
        session.add_column(name)
        session.set_grade(s.id, name, grade)
    # Période 1 = 2.0 (3 jours), période 2 = 5.0 (1 jour) → 3.5
    assert session.overall_average(s.id) == 3.5


def test_moyenne_generale_ignore_periode_sans_note():
    session, (s,) = make_session(period_length=1)
    session.add_column("Mo")
    session.set_grade(s.id, "Mo", 2.0)
    session.add_column("Di")
    session.set_absent(s.id, "Di", True)
    assert session.overall_average(s.id) == 2.0


def test_moyenne_generale_aucune_periode_eligible():
    session, (s,) = make_session(seated=False)
    session.add_column("Mo")
    assert session.overall_average(s.id) is None


def test_moyenne_generale_mode_simple_sans_periode():
    session, (s,) = make_session()
    session.grading.columns = ["A", "B"]
    session.ledger.grades.set(s.id, "A", 2.0)
    session.ledger.grades.set(s.id, "B", 4.0)
    assert session.periods == []
    assert session.overall_average(s.id) == 3.0


# --- Suppression / renommage ---

def test_delete_column_retire_les_entrees_et_la_periode_vide():
    session, (s,) = make_session(period_length=3)
    session.add_column("Mo")
    session.add_column("Di")
    session.add_column("Mi")
    session.add_column("Do")
    session.set_lateness(s.id, "Do", 5)

    session.delete_column("Do")

    assert "Do" not in session.columns
    assert len(session.periods) == 1
    assert session.active_period_id is None
    assert session.count_late(s.id) == 0


def test_delete_column_periode_non_vide_conservee():
    session, (s,) = make_session(period_length=3)
    session.add_column("Mo")
    session.add_column("Di")
    session.delete_column("Mo")
    assert session.periods[0].columns == ["Di"]
    assert session.active_period_id == session.periods[0].id
    assert session.ledger.grade(s.id, "Mo") is None


def test_delete_column_inconnue():
    session, _ = make_session()
    with pytest.raises(ValueError, match="introuvable"):
        session.delete_column("Xx")


def test_rename_column_propage_partout():
    session, (s,) = make_session(period_length=3)
    session.add_column("Mo")
    session.set_absent(s.id, "Mo", True)
    session.rename_column("Mo", "12.05.2025")
    assert session.columns == ["12.05.2025"]
    assert session.periods[0].columns == ["12.05.2025"]
    assert session.is_absent(s.id, "12.05.2025")
    assert session.ledger.hidden_grades.get(s.id, "12.05.2025") == 4.0


def test_rename_column_vers_un_nom_existant_refuse():
    session, _ = make_session()
    session.add_column("Mo")
    session.add_column("Di")
    with pytest.raises(ValueError, match="existe déjà"):
        session.rename_column("Mo", "Di")
    assert session.columns == ["Mo", "Di"]


# --- Note de compteur ---

def test_scenario_note_de_compteur():
    session, (s,) = make_session()
    assert session.calculate_grade(s.id) == "4.0"
    for _ in range(3):
        session.increment_counter(s.id)
    assert session.calculate_grade(s.id) == "2.5"
    for _ in range(5):
        session.increment_counter(s.id)
    assert session.calculate_grade(s.id) == "1.0"


def test_note_de_compteur_negatif_plafonnee_a_six():
    session, (s,) = make_session()
    for _ in range(6):
        session.decrement_counter(s.id)
    assert session.counter(s.id) == -6
    assert session.calculate_grade(s.id) == "6.0"


def test_note_de_depart_3_5():
    session, (s,) = make_session()
    session.set_starting_grade(3.5)
    session.increment_counter(s.id)
    assert session.calculate_grade(s.id) == "3.0"
    with pytest.raises(ValueError):
        session.set_starting_grade(0.5)


def test_reset_counters():
    session, (s,) = make_session()
    session.increment_counter(s.id)
    session.reset_counters()
    assert session.counter(s.id) == 0


@pytest.mark.parametrize("value, band", [(1.0, 1), (1.5, 1), (1.6, 2), (2.5, 2), (3.0, 3), (4.5, 4), (5.5, 5), (6.0, 6)])
def test_grade_band(value, band):
    assert grade_band(value) == band


def test_arrondi_demi_vers_le_haut():
    assert round_grade(2.25) == 2.3
    assert format_grade(2) == "2.0"
    assert quick_score_grade(1, 4.0) == 3.5
