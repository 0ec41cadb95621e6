"""CSV loading with schema validation.

The loader is the only place where raw, loosely typed columns are turned
into the typed columns declared by a :class:`DatasetSchema`. Anything that
does not fit the schema fails here with :class:`LoadError` rather than
surfacing later as a confusing estimation failure.
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np
import pandas as pd

from ..core.base import LoadError
from ..core.schema import ColumnKind, ColumnRole, Dataset, DatasetSchema

logger = logging.getLogger(__name__)


class DatasetLoader:
    """Load a tabular dataset and type its columns according to a schema.

    Only declared columns are kept, in schema order.

    Examples:
        >>> schema = DatasetSchema.build(
        ...     deforestation=("outcome", "continuous"),
        ...     distance=("running", "continuous"),
        ...     treated=("treatment", "binary"),
        ...     country=("group", "categorical"),
        ... )
        >>> dataset = DatasetLoader(schema).load("border.csv")
    """

    def __init__(self, schema: DatasetSchema, drop_missing: bool = True) -> None:
        """Initialize the loader.

        Args:
            schema: Declared column roles and kinds
            drop_missing: Drop rows with missing values in declared columns.
                If False, any missing value raises ``LoadError``.
        """
        self.schema = schema
        self.drop_missing = drop_missing

    def load(self, path: str | Path) -> Dataset:
        """Read a CSV file and validate it.

        Args:
            path: Location of the CSV file

        Returns:
            The validated dataset

        Raises:
            LoadError: If the file is unreadable or does not match the schema
        """
        path = Path(path)
        if not path.is_file():
            raise LoadError(f"Data file not found: {path}")

        try:
            raw = pd.read_csv(path)
        except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise LoadError(f"Could not read {path}: {e}") from e

        logger.info("Read %d rows from %s", len(raw), path)
        return self.load_frame(raw, source=str(path))

    def load_frame(self, raw: pd.DataFrame, source: str = "<frame>") -> Dataset:
        """Validate an in-memory frame against the schema.

        Args:
            raw: Untyped input frame; it is not modified
            source: Label used in error and log messages

        Returns:
            The validated dataset

        Raises:
            LoadError: If a declared column is absent or cannot be typed
        """
        missing_columns = [name for name in self.schema.names if name not in raw.columns]
        if missing_columns:
            raise LoadError(f"{source} is missing declared columns: {missing_columns}")

        frame = raw[self.schema.names].copy()
        frame = self._handle_missing(frame, source)

        for name in self.schema.names:
            frame[name] = self._coerce(frame[name], self._load_kind(name), source)

        if frame.empty:
            raise LoadError(f"{source} has no complete rows for the declared columns")

        return Dataset(frame.reset_index(drop=True), self.schema)

    def _load_kind(self, name: str) -> ColumnKind:
        spec = self.schema.columns[name]
        # A labelled treatment is still a two-level indicator for the estimators
        if spec.role is ColumnRole.TREATMENT and spec.kind is ColumnKind.CATEGORICAL:
            return ColumnKind.BINARY
        return spec.kind

    def _handle_missing(self, frame: pd.DataFrame, source: str) -> pd.DataFrame:
        missing = frame.isna()
        if not missing.to_numpy().any():
            return frame

        counts = {k: int(v) for k, v in missing.sum().items() if v > 0}
        if not self.drop_missing:
            raise LoadError(f"{source} has missing values in declared columns: {counts}")

        complete = ~missing.any(axis=1)
        logger.warning(
            "Dropping %d of %d rows from %s with missing values: %s",
            int((~complete).sum()),
            len(frame),
            source,
            counts,
        )
        return frame.loc[complete]

    @staticmethod
    def _coerce(column: pd.Series, kind: ColumnKind, source: str) -> pd.Series:
        name = column.name

        if kind is ColumnKind.CONTINUOUS:
            try:
                return pd.to_numeric(column, errors="raise").astype(float)
            except (ValueError, TypeError) as e:
                raise LoadError(
                    f"Column '{name}' in {source} is declared continuous but is not numeric: {e}"
                ) from e

        if kind is ColumnKind.BINARY:
            unique_vals = pd.unique(column)
            if len(unique_vals) > 2:
                raise LoadError(
                    f"Column '{name}' in {source} must be a two-level indicator but has "
                    f"{len(unique_vals)} distinct values"
                )
            if all(_is_zero_one(v) for v in unique_vals):
                return column.astype(int)
            if len(unique_vals) == 2:
                # Two arbitrary labels: the larger one in sort order becomes 1
                low, high = sorted(unique_vals)
                logger.info("Mapping binary column '%s': %r -> 0, %r -> 1", name, low, high)
                return (column == high).astype(int)
            raise LoadError(
                f"Column '{name}' in {source} must be a two-level indicator but its only value "
                f"{unique_vals[0]!r} is not 0 or 1"
            )

        # Categories keep first-appearance order
        return pd.Series(
            pd.Categorical(column, categories=pd.unique(column)),
            index=column.index,
            name=name,
        )


def _is_zero_one(value: object) -> bool:
    if isinstance(value, (bool, np.bool_)):
        return True
    if isinstance(value, (int, float, np.integer, np.floating)):
        return value in (0, 1)
    return False


def load_dataset(
    path: str | Path, schema: DatasetSchema, drop_missing: bool = True
) -> Dataset:
    """Convenience wrapper around :class:`DatasetLoader`."""
    return DatasetLoader(schema, drop_missing=drop_missing).load(path)
