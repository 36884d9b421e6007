"""Export Pydantic v2 schemas — plain row-oriented tables."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel

from timekeeper.common.constants import ExportKind

ExportValue = Union[str, int, None]


class ExportTable(BaseModel):
    """Flat rows whose keys are exactly ``columns``, in that order."""

    kind: ExportKind
    columns: List[str]
    rows: List[Dict[str, ExportValue]]
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def as_matrix(self) -> List[List[Any]]:
        """Header row followed by value rows, for tabular writers."""
        return [list(self.columns)] + [[row[c] for c in self.columns] for row in self.rows]
