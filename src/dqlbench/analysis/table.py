"""
Multi-benchmark, multi-version comparison tables.

Rows are benchmarks and columns are engine versions. The column set is the
union over all rows so every row lines up, with empty cells where a
benchmark has no data for a version.
"""

from dataclasses import dataclass, field
from typing import Optional

from dqlbench.analysis.comparator import Classification, classify
from dqlbench.analysis.versions import sort_versions
from dqlbench.core.models import UNSUPPORTED, Significance

CURRENT = "current"
CURRENT_BASELINE = "current_baseline"
HISTORICAL = "historical"


@dataclass(frozen=True)
class TableColumn:
    """One version column."""
    key: str
    version: str
    kind: str

    @property
    def label(self) -> str:
        if self.kind == CURRENT:
            return f"{self.version} (current)"
        if self.kind == CURRENT_BASELINE:
            return f"{self.version} baseline"
        return self.version


@dataclass
class TableCell:
    """
    A timing for one benchmark and version.

    ``value`` is None when nothing was ever recorded. ``unsupported`` marks
    cells where either side of the comparison is the unsupported sentinel.
    """
    value: Optional[float] = None
    classification: Optional[Classification] = None
    unsupported: bool = False

    @property
    def is_missing(self) -> bool:
        return self.value is None


@dataclass
class TableRowInput:
    """Raw timings for one benchmark before table synthesis."""
    name: str
    current: Optional[float] = None
    current_baseline: Optional[float] = None
    historical: dict[str, float] = field(default_factory=dict)


@dataclass
class TableRow:
    name: str
    cells: dict[str, TableCell]


@dataclass
class TableTally:
    """Counts across all classified cells of a table."""
    improvements: int = 0
    regressions: int = 0
    no_change: int = 0
    no_baseline: int = 0

    @property
    def total(self) -> int:
        return self.improvements + self.regressions + self.no_change

    @property
    def verdict(self) -> str:
        if self.regressions > 0:
            return "regression"
        if self.improvements > self.no_change:
            return "improvement"
        return "stable"


@dataclass
class ComparisonTable:
    current_version: str
    columns: list[TableColumn]
    rows: list[TableRow]

    def tally(self) -> TableTally:
        tally = TableTally()
        for row in self.rows:
            classified = [
                row.cells[c.key].classification
                for c in self.columns
                if c.kind == HISTORICAL and row.cells[c.key].classification is not None
            ]
            if not classified:
                tally.no_baseline += 1
            for classification in classified:
                if classification.significance == Significance.NO_CHANGE:
                    tally.no_change += 1
                elif classification.significance == Significance.IMPROVEMENT:
                    tally.improvements += 1
                else:
                    tally.regressions += 1
        return tally


def _historical_cell(value: Optional[float], current: Optional[float]) -> TableCell:
    if value is None:
        return TableCell()
    if value == UNSUPPORTED or current == UNSUPPORTED:
        return TableCell(value=value, unsupported=True)
    if current is None:
        return TableCell(value=value)
    return TableCell(value=value, classification=classify(value, current))


def build_table(current_version: str, inputs: list[TableRowInput]) -> ComparisonTable:
    """
    Synthesize the aligned table.

    Historical cells are classified with the historical timing as the
    baseline and the current timing as the new value, the same argument
    order used for single-benchmark comparisons.
    """
    columns = [TableColumn(key=current_version, version=current_version, kind=CURRENT)]
    if any(row.current_baseline is not None for row in inputs):
        columns.append(TableColumn(
            key=f"{current_version}-baseline", version=current_version, kind=CURRENT_BASELINE,
        ))
    historical_versions = {
        version
        for row in inputs
        for version in row.historical
        if version != current_version
    }
    columns.extend(
        TableColumn(key=version, version=version, kind=HISTORICAL)
        for version in sort_versions(historical_versions)
    )

    rows = []
    for row_input in sorted(inputs, key=lambda r: r.name):
        cells: dict[str, TableCell] = {}
        for column in columns:
            if column.kind == CURRENT:
                value = row_input.current
                cells[column.key] = TableCell(value=value, unsupported=value == UNSUPPORTED)
            elif column.kind == CURRENT_BASELINE:
                value = row_input.current_baseline
                cells[column.key] = TableCell(value=value, unsupported=value == UNSUPPORTED)
            else:
                cells[column.key] = _historical_cell(
                    row_input.historical.get(column.version), row_input.current
                )
        rows.append(TableRow(name=row_input.name, cells=cells))

    return ComparisonTable(current_version=current_version, columns=columns, rows=rows)
