"""
Read-only tabular accessor over merged query results
"""

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

import pandas as pd


class TabularView:
    """
    Indexed get-by-row-and-column access with lenient coercion.

    Getters never raise: a missing column, an out-of-range row or a value that
    cannot be converted yields the zero value of the requested type.
    """

    def __init__(self, columns: Sequence[str], records: Sequence[Dict[str, Any]]) -> None:
        self._columns: Tuple[str, ...] = tuple(columns)
        self._records: Tuple[Dict[str, Any], ...] = tuple(dict(r) for r in records)

    @property
    def columns(self) -> List[str]:
        return list(self._columns)

    def __len__(self) -> int:
        return len(self._records)

    def __repr__(self) -> str:
        return f"TabularView(rows={len(self)}, columns={list(self._columns)})"

    def get(self, row: int, col: str) -> Tuple[Optional[Any], bool]:
        """Return ``(value, found)``; negative indexes are out of range"""
        if row < 0 or row >= len(self._records):
            return None, False
        record = self._records[row]
        if col not in record:
            return None, False
        return record[col], True

    def get_string(self, row: int, col: str) -> str:
        value, found = self.get(row, col)
        if not found or value is None:
            return ""
        if isinstance(value, str):
            return value
        try:
            return str(value)
        except ValueError:
            # ints beyond the interpreter's digit limit
            return ""

    def get_float(self, row: int, col: str) -> float:
        value, found = self.get(row, col)
        if not found or value is None or isinstance(value, bool):
            return 0.0
        if isinstance(value, (int, float)):
            try:
                return float(value)
            except OverflowError:
                return 0.0
        if isinstance(value, str):
            try:
                return float(value.strip())
            except ValueError:
                return 0.0
        return 0.0

    def get_int(self, row: int, col: str) -> int:
        value, found = self.get(row, col)
        if found and isinstance(value, int) and not isinstance(value, bool):
            return value
        number = self.get_float(row, col)
        if not math.isfinite(number):
            return 0
        return int(number)

    def to_records(self) -> List[Dict[str, Any]]:
        return [dict(r) for r in self._records]

    def to_pandas(self) -> pd.DataFrame:
        """Materialize as a pandas DataFrame; missing trailing fields become NaN/None"""
        return pd.DataFrame.from_records(list(self._records), columns=list(self._columns))
