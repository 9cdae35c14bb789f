"""
Disposition libre des bancs sur le canevas de la salle.

Chaque banc est un rectangle aligné sur les axes. Deux bancs ne peuvent pas se
chevaucher : une marge fixe est ajoutée autour de chaque banc avant le test.
"""

import logging
import math
import uuid
from typing import Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from app.core.errors import NotFoundError

logger = logging.getLogger(__name__)

DeskType = Literal["single", "double"]

SINGLE_DESK_WIDTH = 120
DOUBLE_DESK_WIDTH = 240
DESK_HEIGHT = 100
SCAN_STEP = 20       # Pas de la grille parcourue par add_desk
SNAP_PITCH = 20      # Pas d'alignement des déplacements
COLLISION_MARGIN = 10

DEFAULT_CANVAS_WIDTH = 1200
DEFAULT_CANVAS_HEIGHT = 800

DESK_CAPACITY = {"single": 1, "double": 2}
DESK_WIDTH = {"single": SINGLE_DESK_WIDTH, "double": DOUBLE_DESK_WIDTH}


class Desk(BaseModel):
    id: int
    type: DeskType
    x: int = 0
    y: int = 0
    capacity: int = 1
    students: List[uuid.UUID] = Field(default_factory=list)  # Ordre d'arrivée, len <= capacity

    @property
    def width(self) -> int:
        return DESK_WIDTH[self.type]

    @property
    def height(self) -> int:
        return DESK_HEIGHT

    @property
    def is_full(self) -> bool:
        return len(self.students) >= self.capacity


def rectangles_overlap(
    a: Tuple[int, int, int, int],
    b: Tuple[int, int, int, int],
    margin: int = COLLISION_MARGIN,
) -> bool:
    """
    Test de collision entre deux rectangles (x, y, largeur, hauteur).
    Le rectangle `a` est élargi de `margin` de chaque côté ; le chevauchement
    doit être strict sur les deux axes.
    """
    ax, ay, aw, ah = a
    bx, by, bw, bh = b
    horizontal = ax - margin < bx + bw and ax + aw + margin > bx
    vertical = ay - margin < by + bh and ay + ah + margin > by
    return horizontal and vertical


def _snap(value: float, pitch: int = SNAP_PITCH) -> int:
    return int(math.floor(value / pitch + 0.5)) * pitch


class DeskLayout:
    def __init__(
        self,
        canvas_width: int = DEFAULT_CANVAS_WIDTH,
        canvas_height: int = DEFAULT_CANVAS_HEIGHT,
        desks: Optional[List[Desk]] = None,
    ):
        self.canvas_width = canvas_width
        self.canvas_height = canvas_height
        self._desks: Dict[int, Desk] = {}
        for desk in desks or []:
            self._desks[desk.id] = desk

    # --- Requêtes ---

    def get(self, desk_id: int) -> Optional[Desk]:
        return self._desks.get(desk_id)

    def require(self, desk_id: int) -> Desk:
        desk = self._desks.get(desk_id)
        if desk is None:
            raise NotFoundError(f"Banc {desk_id} introuvable.")
        return desk

    def all(self) -> List[Desk]:
        return list(self._desks.values())

    def desk_of(self, student_id: uuid.UUID) -> Optional[Desk]:
        """Banc occupé par l'élève, ou None s'il n'est pas placé."""
        for desk in self._desks.values():
            if student_id in desk.students:
                return desk
        return None

    def collides(self, x: int, y: int, width: int, height: int, ignore_id: Optional[int] = None) -> bool:
        box = (x, y, width, height)
        return any(
            rectangles_overlap(box, (d.x, d.y, d.width, d.height))
            for d in self._desks.values()
            if d.id != ignore_id
        )

    def find_free_position(self, desk_type: DeskType) -> Optional[Tuple[int, int]]:
        """
        Parcourt la grille de haut en bas puis de gauche à droite et retourne
        la première position libre dans les limites actuelles du canevas.
        """
        width = DESK_WIDTH[desk_type]
        for y in range(0, self.canvas_height - DESK_HEIGHT + 1, SCAN_STEP):
            for x in range(0, self.canvas_width - width + 1, SCAN_STEP):
                if not self.collides(x, y, width, DESK_HEIGHT):
                    return x, y
        return None

    # --- Mutations ---

    def add_desk(self, desk_type: DeskType) -> Optional[Desk]:
        """Place un nouveau banc ; retourne None s'il n'y a plus de place."""
        if desk_type not in DESK_CAPACITY:
            raise ValueError(f"Type de banc invalide : {desk_type!r}.")

        position = self.find_free_position(desk_type)
        if position is None:
            logger.info("Aucune place libre pour un banc %s (canevas %dx%d)",
                        desk_type, self.canvas_width, self.canvas_height)
            return None

        desk = Desk(
            id=max(self._desks, default=0) + 1,
            type=desk_type,
            x=position[0],
            y=position[1],
            capacity=DESK_CAPACITY[desk_type],
        )
        self._desks[desk.id] = desk
        return desk

    def move_desk(self, desk_id: int, x: float, y: float) -> Tuple[int, int]:
        """
        Déplace un banc. La position est alignée sur la grille, X est borné à
        la largeur du canevas, Y peut dépasser la hauteur (le canevas grandit).
        En cas de collision la position précédente est conservée.
        """
        desk = self.require(desk_id)

        new_x = min(max(_snap(x), 0), max(0, self.canvas_width - desk.width))
        new_y = max(_snap(y), 0)

        if self.collides(new_x, new_y, desk.width, desk.height, ignore_id=desk.id):
            logger.debug("Déplacement du banc %s refusé : collision en (%d, %d)", desk_id, new_x, new_y)
            return desk.x, desk.y

        desk.x, desk.y = new_x, new_y
        if new_y + desk.height > self.canvas_height:
            self.canvas_height = new_y + desk.height + SNAP_PITCH
        return desk.x, desk.y

    def remove_desk(self, desk_id: int) -> List[uuid.UUID]:
        """Supprime le banc et retourne les élèves qui retournent dans la liste."""
        desk = self.require(desk_id)
        del self._desks[desk_id]
        return list(desk.students)

    def __len__(self) -> int:
        return len(self._desks)
