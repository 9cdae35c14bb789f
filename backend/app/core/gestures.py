"""
Machine à états du geste « appui court / appui long » sur la carte d'un élève.

- relâcher avant le seuil → incrément du compteur ;
- maintenir au-delà du seuil → décrément (déclenché une seule fois) ;
- un glissement détecté annule l'action en attente.

Les temps sont fournis par l'appelant (millisecondes), aucune minuterie
de l'interface n'est utilisée : l'interface appelle `tick()` périodiquement.
"""

import enum
import math
from typing import Optional

DEFAULT_LONG_PRESS_MS = 500
DEFAULT_DRAG_THRESHOLD_PX = 5.0


class GestureState(str, enum.Enum):
    IDLE = "idle"
    PRESSED = "pressed"
    LONG_PRESS_FIRED = "long_press_fired"
    DRAGGING = "dragging"


class CounterAction(str, enum.Enum):
    INCREMENT = "increment"
    DECREMENT = "decrement"


class CounterGesture:
    def __init__(
        self,
        long_press_ms: int = DEFAULT_LONG_PRESS_MS,
        drag_threshold_px: float = DEFAULT_DRAG_THRESHOLD_PX,
    ):
        self.long_press_ms = long_press_ms
        self.drag_threshold_px = drag_threshold_px
        self.state = GestureState.IDLE
        self._pressed_at: Optional[float] = None

    def press(self, at_ms: float) -> None:
        self.state = GestureState.PRESSED
        self._pressed_at = at_ms

    def tick(self, now_ms: float) -> Optional[CounterAction]:
        """Déclenche le décrément quand l'appui dépasse le seuil."""
        if self.state is GestureState.PRESSED and self._elapsed(now_ms) >= self.long_press_ms:
            self.state = GestureState.LONG_PRESS_FIRED
            return CounterAction.DECREMENT
        return None

    def move(self, dx: float, dy: float) -> None:
        if self.state is GestureState.PRESSED and math.hypot(dx, dy) >= self.drag_threshold_px:
            self.state = GestureState.DRAGGING

    def release(self, at_ms: float) -> Optional[CounterAction]:
        action = None
        if self.state is GestureState.PRESSED:
            # tick() peut ne pas avoir été appelé à temps
            if self._elapsed(at_ms) >= self.long_press_ms:
                action = CounterAction.DECREMENT
            else:
                action = CounterAction.INCREMENT
        self.cancel()
        return action

    def cancel(self) -> None:
        self.state = GestureState.IDLE
        self._pressed_at = None

    def _elapsed(self, now_ms: float) -> float:
        return now_ms - (self._pressed_at if self._pressed_at is not None else now_ms)
