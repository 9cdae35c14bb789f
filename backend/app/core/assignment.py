"""
Affectation des élèves aux bancs (glisser-déposer).

Invariants maintenus :
- un élève occupe au plus un banc ;
- un banc n'a jamais plus d'élèves que sa capacité ;
- sur un banc double, au plus un élève à gauche et au plus un à droite.
"""

import uuid
import logging
from typing import List, Optional

from app.core.layout import DeskLayout
from app.core.roster import Roster

logger = logging.getLogger(__name__)

SIDES = ("left", "right")


def opposite_side(side: str) -> str:
    return "right" if side == "left" else "left"


def normalize_drop_side(drop_side: Optional[str]) -> Optional[str]:
    """'left' / 'right' sont conservés ; centre, vide ou inconnu → None."""
    if drop_side in SIDES:
        return drop_side
    return None


class AssignmentEngine:
    def __init__(self, roster: Roster, layout: DeskLayout):
        self.roster = roster
        self.layout = layout

    def assign(self, student_id: uuid.UUID, desk_id: int, drop_side: Optional[str] = None) -> bool:
        """
        Place un élève sur un banc.

        Retourne False (sans rien modifier) si le banc est plein et que l'élève
        n'y est pas déjà assis. Sur un banc double, le nouvel élève prend le
        côté opposé à celui de l'occupant ; si l'occupant n'avait pas de côté,
        le nouvel élève prend `drop_side` (gauche par défaut) et l'occupant
        l'autre. Redéposer un élève sur son propre banc du côté de son voisin
        échange les deux côtés.
        Seul sur son banc double et redéposé sans côté, l'élève garde le sien.
        """
        student = self.roster.require(student_id)
        desk = self.layout.require(desk_id)

        already_here = student_id in desk.students
        previous_side = student.desk_position
        if desk.is_full and not already_here:
            logger.debug("Banc %s plein, affectation de %s ignorée", desk_id, student_id)
            return False

        self.unassign(student_id)

        side = normalize_drop_side(drop_side)
        if desk.type == "single":
            student.desk_position = None
        elif desk.students:
            partner = self.roster.require(desk.students[0])
            if already_here and side is not None:
                student.desk_position = side
                partner.desk_position = opposite_side(side)
            elif partner.desk_position is None:
                student.desk_position = side or "left"
                partner.desk_position = opposite_side(student.desk_position)
            else:
                student.desk_position = opposite_side(partner.desk_position)
        elif already_here and side is None and previous_side in SIDES:
            student.desk_position = previous_side
        else:
            student.desk_position = side or "left"

        desk.students.append(student_id)
        logger.debug("Élève %s placé sur le banc %s (%s)", student_id, desk_id, student.desk_position)
        return True

    def unassign(self, student_id: uuid.UUID) -> bool:
        """Retire l'élève de son banc. Retourne False s'il n'était pas placé."""
        student = self.roster.get(student_id)
        if student is not None:
            student.desk_position = None

        desk = self.layout.desk_of(student_id)
        if desk is None:
            return False
        desk.students.remove(student_id)
        return True

    def release(self, student_ids: List[uuid.UUID]) -> None:
        """Efface le côté des élèves renvoyés dans la liste (banc supprimé)."""
        for student_id in student_ids:
            student = self.roster.get(student_id)
            if student is not None:
                student.desk_position = None

    def reset_all(self) -> int:
        """Vide tous les bancs. Retourne le nombre d'élèves libérés."""
        count = 0
        for desk in self.layout.all():
            self.release(desk.students)
            count += len(desk.students)
            desk.students.clear()
        return count

    def unassigned_students(self) -> List[uuid.UUID]:
        seated = {sid for desk in self.layout.all() for sid in desk.students}
        return [sid for sid in self.roster.ids() if sid not in seated]
