"""CellStore protocol, a dict-backed store and the evaluation result dataclass."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from sheetcalc._errors import CellLookupError


@runtime_checkable
class CellStore(Protocol):
    """Read access to the display text of other cells."""

    def lookup(self, cell_id: str) -> str:
        """Return the display text of *cell_id* (canonical uppercase).

        Raises CellLookupError when the cell is unknown.
        """
        ...


class DictCellStore:
    """A :class:`CellStore` over a plain mapping of cell id -> text.

    Keys are canonicalized to uppercase; values are converted with ``str``.
    """

    __slots__ = ("_cells",)

    def __init__(self, cells: Mapping[str, object] | None = None) -> None:
        self._cells: dict[str, str] = {}
        for cell_id, value in (cells or {}).items():
            self._cells[cell_id.upper()] = str(value)

    def lookup(self, cell_id: str) -> str:
        try:
            return self._cells[cell_id.upper()]
        except KeyError:
            raise CellLookupError(cell_id.upper()) from None

    def __contains__(self, cell_id: str) -> bool:
        return cell_id.upper() in self._cells

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        return f"DictCellStore({self._cells!r})"


@dataclass(frozen=True)
class EvaluationResult:
    """Outcome of one formula evaluation, with every rewrite pass recorded."""

    formula: str
    value: str
    passes: tuple[str, ...]  # output of each pass, the last equals value

    @property
    def iterations(self) -> int:
        return len(self.passes)
