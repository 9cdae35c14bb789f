"""
Tests unitaires pour le registre des présences, retards et notes masquées.
"""

import uuid
from datetime import date

import pytest

from app.core.ledger import AttendanceLedger, parse_column_date, validate_grade


S = uuid.uuid4()


# --- validate_grade ---

@pytest.mark.parametrize("raw, expected", [(1, 1.0), ("2,5", 2.5), (" 6.0 ", 6.0), (3.7, 3.7)])
def test_validate_grade_valeurs_acceptees(raw, expected):
    assert validate_grade(raw) == expected


@pytest.mark.parametrize("raw", [0.9, 6.1, "abc", None, "", float("nan"), True])
def test_validate_grade_valeurs_refusees(raw):
    with pytest.raises(ValueError):
        validate_grade(raw)


# --- parse_column_date ---

def test_parse_date_formats():
    today = date(2025, 6, 1)
    assert parse_column_date("2025-03-14", today) == date(2025, 3, 14)
    assert parse_column_date("14.03.2025", today) == date(2025, 3, 14)
    assert parse_column_date("14.03.25", today) == date(2025, 3, 14)
    assert parse_column_date("14.03.", today) == date(2025, 3, 14)


def test_parse_date_libelle_non_date():
    assert parse_column_date("Mo") is None
    assert parse_column_date("31.02.") is None


# --- Absences et notes masquées ---

def test_absence_masque_puis_restaure_la_note():
    ledger = AttendanceLedger()
    ledger.set_grade(S, "Mo", 2.0)

    ledger.set_absent(S, "Mo", True)
    assert ledger.grade(S, "Mo") is None
    assert ledger.hidden_grades.get(S, "Mo") == 2.0
    assert ledger.is_absent(S, "Mo")

    ledger.set_absent(S, "Mo", False)
    assert ledger.grade(S, "Mo") == 2.0
    assert not ledger.hidden_grades.has(S, "Mo")
    assert not ledger.is_absent(S, "Mo")


def test_note_refusee_pour_un_absent():
    ledger = AttendanceLedger()
    ledger.set_absent(S, "Mo", True)
    with pytest.raises(ValueError, match="absent"):
        ledger.set_grade(S, "Mo", 3.0)
    assert ledger.grade(S, "Mo") is None


def test_note_invalide_ne_modifie_rien():
    ledger = AttendanceLedger()
    ledger.set_grade(S, "Mo", 2.0)
    with pytest.raises(ValueError):
        ledger.set_grade(S, "Mo", 7.0)
    assert ledger.grade(S, "Mo") == 2.0


# --- Retards ---

def test_retard_leve_l_absence():
    ledger = AttendanceLedger()
    ledger.set_absent(S, "Mo", True)
    ledger.set_lateness(S, "Mo", 10)
    assert ledger.lateness_level(S, "Mo") == 10
    assert not ledger.is_absent(S, "Mo")


def test_absence_efface_le_retard():
    ledger = AttendanceLedger()
    ledger.set_lateness(S, "Mo", 15)
    ledger.set_absent(S, "Mo", True)
    assert ledger.lateness_level(S, "Mo") == 0
    assert ledger.is_absent(S, "Mo")


def test_retard_zero_efface():
    ledger = AttendanceLedger()
    ledger.set_lateness(S, "Mo", 5)
    ledger.set_lateness(S, "Mo", 0)
    assert ledger.count_late(S) == 0


def test_retard_niveau_invalide():
    ledger = AttendanceLedger()
    with pytest.raises(ValueError, match="retard invalide"):
        ledger.set_lateness(S, "Mo", 7)


def test_compteurs_retards_et_absences():
    ledger = AttendanceLedger()
    ledger.set_lateness(S, "Mo", 5)
    ledger.set_lateness(S, "Di", 20)
    ledger.set_absent(S, "Mi", True)
    assert ledger.count_late(S) == 2
    assert ledger.count_absent(S) == 1


def test_niveau_courant_du_jour():
    ledger = AttendanceLedger()
    ledger.set_lateness(S, "10.03.2025", 30)
    ledger.set_lateness(S, "14.03.2025", 5)
    assert ledger.current_lateness_level(S, today=date(2025, 3, 10)) == 30


def test_niveau_courant_entree_la_plus_recente():
    ledger = AttendanceLedger()
    ledger.set_lateness(S, "14.03.2025", 5)
    ledger.set_lateness(S, "2025-03-20", 25)
    ledger.set_lateness(S, "Mo", 45)  # non datée, ignorée
    assert ledger.current_lateness_level(S, today=date(2025, 4, 1)) == 25


def test_niveau_courant_sans_retard():
    assert AttendanceLedger().current_lateness_level(S, today=date(2025, 4, 1)) == 0


def test_reset_lateness_efface_tout():
    ledger = AttendanceLedger()
    other = uuid.uuid4()
    ledger.set_lateness(S, "Mo", 5)
    ledger.set_lateness(other, "Di", 10)
    ledger.reset_lateness()
    assert ledger.count_late(S) == 0 and ledger.count_late(other) == 0


# --- Cascades ---

def test_drop_column_efface_toutes_les_tables():
    ledger = AttendanceLedger()
    ledger.set_grade(S, "Mo", 2.0)
    ledger.set_absent(S, "Mo", True)
    ledger.set_lateness(S, "Di", 5)
    ledger.drop_column("Mo")
    assert not ledger.hidden_grades.has(S, "Mo")
    assert not ledger.is_absent(S, "Mo")
    assert ledger.lateness_level(S, "Di") == 5


def test_rename_column_dans_toutes_les_tables():
    ledger = AttendanceLedger()
    ledger.set_grade(S, "Mo", 2.0)
    ledger.set_lateness(S, "Mo", 5)
    ledger.rename_column("Mo", "Montag")
    assert ledger.grade(S, "Montag") == 2.0
    assert ledger.lateness_level(S, "Montag") == 5
    assert ledger.grade(S, "Mo") is None
