"""
Table associative à deux niveaux : élève → colonne (date) → valeur.

Utilisée pour les notes, absences, retards et notes masquées.
En mémoire on garde des dictionnaires imbriqués ; à la frontière de persistance
la table est aplatie en liste de paires (flatten / unflatten).
"""

import uuid
from typing import Any, Dict, Iterator, List, Optional, Tuple

FlatTable = List[Tuple[uuid.UUID, List[Tuple[str, Any]]]]


class NestedTable:
    def __init__(self):
        self._rows: Dict[uuid.UUID, Dict[str, Any]] = {}

    def get(self, student_id: uuid.UUID, column: str, default: Any = None) -> Any:
        return self._rows.get(student_id, {}).get(column, default)

    def has(self, student_id: uuid.UUID, column: str) -> bool:
        return column in self._rows.get(student_id, {})

    def set(self, student_id: uuid.UUID, column: str, value: Any) -> None:
        self._rows.setdefault(student_id, {})[column] = value

    def pop(self, student_id: uuid.UUID, column: str, default: Any = None) -> Any:
        """Retire une entrée ; la ligne de l'élève disparaît quand elle est vide."""
        row = self._rows.get(student_id)
        if row is None or column not in row:
            return default
        value = row.pop(column)
        if not row:
            del self._rows[student_id]
        return value

    def row(self, student_id: uuid.UUID) -> Dict[str, Any]:
        """Copie de la ligne d'un élève (colonne → valeur)."""
        return dict(self._rows.get(student_id, {}))

    def drop_student(self, student_id: uuid.UUID) -> None:
        self._rows.pop(student_id, None)

    def drop_column(self, column: str) -> None:
        for student_id in list(self._rows):
            self.pop(student_id, column)

    def rename_column(self, old: str, new: str) -> None:
        for row in self._rows.values():
            if old in row:
                row[new] = row.pop(old)

    def clear(self) -> None:
        self._rows.clear()

    def items(self) -> Iterator[Tuple[uuid.UUID, str, Any]]:
        for student_id, row in self._rows.items():
            for column, value in row.items():
                yield student_id, column, value

    def flatten(self) -> FlatTable:
        return [
            (student_id, list(row.items()))
            for student_id, row in self._rows.items()
            if row
        ]

    @classmethod
    def unflatten(cls, pairs: Optional[FlatTable]) -> "NestedTable":
        table = cls()
        for student_id, row in pairs or []:
            for column, value in row:
                table.set(student_id, column, value)
        return table

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NestedTable):
            return NotImplemented
        return self._rows == other._rows

    def __len__(self) -> int:
        return sum(len(row) for row in self._rows.values())
