"""
Moteur des périodes de notation et des moyennes.

Les colonnes (dates) sont regroupées en périodes de longueur configurable.
Une période accumule des colonnes jusqu'à atteindre `max_columns` ; elle est
alors clôturée et la colonne suivante ouvre une nouvelle période.

Échelle de notes : 1.0 (meilleure) à 6.0 (moins bonne).
"""

import uuid
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from app.core.errors import NotFoundError
from app.core.ledger import MAX_GRADE, MIN_GRADE, AttendanceLedger

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_LENGTH = 5
DEFAULT_STARTING_GRADE = 4.0
COUNTER_STEP = 0.5  # Chaque point du compteur améliore la note d'un demi-point


def round_grade(value: float) -> float:
    """Arrondi à une décimale, demi vers le haut (2.25 → 2.3)."""
    return float(Decimal(str(value)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def format_grade(value: float) -> str:
    return f"{round_grade(value):.1f}"


def quick_score_grade(counter: int, starting_grade: float = DEFAULT_STARTING_GRADE) -> float:
    """Note dérivée du compteur : clamp(note_de_départ - compteur*0.5, 1.0, 6.0)."""
    grade = starting_grade - counter * COUNTER_STEP
    return round_grade(max(MIN_GRADE, min(MAX_GRADE, grade)))


def grade_band(value: float) -> int:
    """Tranche d'affichage (1 à 6) utilisée pour la couleur de la note."""
    for upper, band in ((1.5, 1), (2.5, 2), (3.5, 3), (4.5, 4), (5.5, 5)):
        if value <= upper:
            return band
    return 6


def _mean(values: List[float]) -> Optional[float]:
    if not values:
        return None
    return round_grade(sum(values) / len(values))


class Period(BaseModel):
    id: int
    name: str
    columns: List[str] = Field(default_factory=list)
    max_columns: int = DEFAULT_PERIOD_LENGTH
    active: bool = False

    @property
    def is_full(self) -> bool:
        return len(self.columns) >= self.max_columns


class GradingEngine:
    def __init__(
        self,
        ledger: AttendanceLedger,
        columns: Optional[List[str]] = None,
        periods: Optional[List[Period]] = None,
        active_period_id: Optional[int] = None,
        period_length: int = DEFAULT_PERIOD_LENGTH,
    ):
        self.ledger = ledger
        self.columns: List[str] = list(columns or [])
        self.periods: List[Period] = list(periods or [])
        self.active_period_id = active_period_id
        self.period_length = period_length

    # --- Requêtes ---

    def get_period(self, period_id: int) -> Optional[Period]:
        return next((p for p in self.periods if p.id == period_id), None)

    def require_period(self, period_id: int) -> Period:
        period = self.get_period(period_id)
        if period is None:
            raise NotFoundError(f"Période {period_id} introuvable.")
        return period

    def period_of(self, column: str) -> Optional[Period]:
        return next((p for p in self.periods if column in p.columns), None)

    @property
    def active_period(self) -> Optional[Period]:
        if self.active_period_id is None:
            return None
        return self.get_period(self.active_period_id)

    def has_column(self, name: str) -> bool:
        return name in self.columns or self.period_of(name) is not None

    def require_column(self, name: str) -> None:
        if not self.has_column(name):
            raise NotFoundError(f"Colonne '{name}' introuvable.")

    # --- Colonnes ---

    def set_period_length(self, length: int) -> None:
        """Longueur appliquée aux prochaines périodes (les existantes ne changent pas)."""
        if length < 1:
            raise ValueError("Une période doit contenir au moins une colonne.")
        self.period_length = length

    def add_column(self, name: str) -> Period:
        """
        Ajoute une colonne à la période active, ou ouvre une nouvelle période
        si aucune n'est active ou si l'active est pleine.
        Lève ValueError si le libellé existe déjà.
        """
        name = (name or "").strip()
        if not name:
            raise ValueError("Le nom de la colonne ne peut pas être vide.")
        if self.has_column(name):
            raise ValueError(f"La colonne '{name}' existe déjà.")

        period = self.active_period
        if period is None or period.is_full:
            period = self._open_period()

        period.columns.append(name)
        self.columns.append(name)

        if period.is_full:
            period.active = False
            self.active_period_id = None
            logger.debug("Période '%s' clôturée (%d colonnes)", period.name, len(period.columns))
        return period

    def _open_period(self) -> Period:
        next_id = max((p.id for p in self.periods), default=0) + 1
        for other in self.periods:
            other.active = False
        period = Period(
            id=next_id,
            name=f"Periode {next_id}",
            max_columns=self.period_length,
            active=True,
        )
        self.periods.append(period)
        self.active_period_id = period.id
        logger.info("Nouvelle période ouverte : %s (%d colonnes max)", period.name, period.max_columns)
        return period

    def delete_column(self, name: str) -> None:
        """
        Supprime la colonne de toutes les tables et de sa période.
        Une période devenue vide est supprimée.
        """
        self.require_column(name)
        self.ledger.drop_column(name)
        if name in self.columns:
            self.columns.remove(name)

        period = self.period_of(name)
        if period is None:
            return
        period.columns.remove(name)
        if not period.columns:
            self.periods.remove(period)
            if self.active_period_id == period.id:
                self.active_period_id = None
            logger.info("Période '%s' supprimée (plus aucune colonne)", period.name)

    def rename_column(self, old: str, new: str) -> None:
        """Renomme la colonne dans toutes les tables et dans sa période."""
        self.require_column(old)
        new = (new or "").strip()
        if not new:
            raise ValueError("Le nom de la colonne ne peut pas être vide.")
        if new == old:
            return
        if self.has_column(new):
            raise ValueError(f"La colonne '{new}' existe déjà.")

        self.ledger.rename_column(old, new)
        self.columns = [new if c == old else c for c in self.columns]
        period = self.period_of(old)
        if period is not None:
            period.columns = [new if c == old else c for c in period.columns]

    # --- Moyennes ---

    def period_grade(self, student_id: uuid.UUID, period_id: int) -> Optional[float]:
        """
        Moyenne d'un élève sur une période.
        None si l'élève était absent à toutes les colonnes ou n'a aucune note.
        Les colonnes sans note ni absence sont ignorées (pas comptées comme 0).
        """
        period = self.require_period(period_id)
        if not period.columns:
            return None
        if all(self.ledger.is_absent(student_id, c) for c in period.columns):
            return None

        grades = [
            self.ledger.grade(student_id, c)
            for c in period.columns
            if not self.ledger.is_absent(student_id, c)
        ]
        return _mean([g for g in grades if g is not None])

    def overall_average(self, student_id: uuid.UUID) -> Optional[float]:
        """
        Moyenne générale. Sans période (mode simple) : moyenne des notes
        présentes. Avec périodes : moyenne des moyennes de période, chaque
        période pesant le même poids quel que soit son nombre de colonnes.
        """
        if not self.periods:
            grades = [
                grade
                for column, grade in self.ledger.grades.row(student_id).items()
                if not self.ledger.is_absent(student_id, column)
            ]
            return _mean(grades)

        period_grades = [self.period_grade(student_id, p.id) for p in self.periods]
        return _mean([g for g in period_grades if g is not None])
