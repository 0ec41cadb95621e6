"""Explicit column schema and the immutable dataset it describes.

Columns are never looked up by guessing: a :class:`DatasetSchema` maps each
column name to a role (what the column means in the analysis) and a kind
(how its values must be typed). The loader validates a frame against the
schema once; everything downstream reads columns through
:meth:`Dataset.column_for`.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd
from numpy.typing import NDArray
from pydantic import BaseModel, Field, model_validator


class ColumnRole(str, Enum):
    """What a column means in the analysis."""

    OUTCOME = "outcome"
    RUNNING = "running"
    TREATMENT = "treatment"
    COVARIATE = "covariate"
    GROUP = "group"
    UNIT = "unit"
    TIME = "time"


class ColumnKind(str, Enum):
    """How a column's values are typed after loading."""

    CONTINUOUS = "continuous"
    BINARY = "binary"
    CATEGORICAL = "categorical"


# Roles that may be declared at most once per schema
SINGULAR_ROLES = frozenset(
    {
        ColumnRole.OUTCOME,
        ColumnRole.RUNNING,
        ColumnRole.TREATMENT,
        ColumnRole.GROUP,
        ColumnRole.UNIT,
        ColumnRole.TIME,
    }
)


class ColumnSpec(BaseModel):
    """Declared role and kind of one column."""

    role: ColumnRole
    kind: ColumnKind

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_role_kind(self) -> ColumnSpec:
        if self.role in (ColumnRole.OUTCOME, ColumnRole.RUNNING) and (
            self.kind is not ColumnKind.CONTINUOUS
        ):
            raise ValueError(f"{self.role.value} columns must be continuous")
        if self.role is ColumnRole.TREATMENT and self.kind is ColumnKind.CONTINUOUS:
            raise ValueError("treatment columns must be binary or categorical")
        return self


class DatasetSchema(BaseModel):
    """Fixed mapping from column name to declared role and kind."""

    columns: dict[str, ColumnSpec] = Field(..., description="Column name -> spec")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_singular_roles(self) -> DatasetSchema:
        if not self.columns:
            raise ValueError("A schema must declare at least one column")
        seen: dict[ColumnRole, str] = {}
        for name, spec in self.columns.items():
            if spec.role in SINGULAR_ROLES:
                if spec.role in seen:
                    raise ValueError(
                        f"Role '{spec.role.value}' declared for both "
                        f"'{seen[spec.role]}' and '{name}'"
                    )
                seen[spec.role] = name
        return self

    @classmethod
    def build(cls, **columns: tuple[str, str]) -> DatasetSchema:
        """Shorthand: ``DatasetSchema.build(y=("outcome", "continuous"), ...)``."""
        return cls(
            columns={
                name: ColumnSpec(role=ColumnRole(role), kind=ColumnKind(kind))
                for name, (role, kind) in columns.items()
            }
        )

    @property
    def names(self) -> list[str]:
        return list(self.columns)

    def column_for(self, role: ColumnRole | str) -> str | None:
        """Name of the column declared with a singular ``role``, if any."""
        role = ColumnRole(role)
        for name, spec in self.columns.items():
            if spec.role is role:
                return name
        return None

    def columns_for(self, role: ColumnRole | str) -> list[str]:
        role = ColumnRole(role)
        return [name for name, spec in self.columns.items() if spec.role is role]

    def kind_of(self, name: str) -> ColumnKind:
        return self.columns[name].kind


@dataclass(frozen=True)
class Observation:
    """One row of a loaded dataset."""

    index: Hashable
    outcome: float | None
    running: float | None
    treatment: Any
    group: Any
    unit: Any
    time: Any
    covariates: dict[str, Any] = field(default_factory=dict)


class Dataset:
    """Immutable, schema-validated tabular dataset.

    The wrapped frame is never handed out directly; :attr:`frame` returns a
    copy, and slicing returns a new :class:`Dataset`.
    """

    def __init__(self, frame: pd.DataFrame, schema: DatasetSchema) -> None:
        self._frame = frame
        self._schema = schema

    @property
    def schema(self) -> DatasetSchema:
        return self._schema

    @property
    def frame(self) -> pd.DataFrame:
        return self._frame.copy()

    def __len__(self) -> int:
        return len(self._frame)

    def __repr__(self) -> str:
        return f"Dataset(n={len(self)}, columns={self._schema.names})"

    def column_for(self, role: ColumnRole | str) -> str | None:
        return self._schema.column_for(role)

    def require_column(self, role: ColumnRole | str) -> str:
        """Like :meth:`column_for` but raises ``KeyError`` for undeclared roles."""
        name = self._schema.column_for(role)
        if name is None:
            raise KeyError(f"Schema declares no '{ColumnRole(role).value}' column")
        return name

    def values(self, column: str) -> NDArray[Any]:
        """A read-only array of one column's values."""
        values = self._frame[column].to_numpy(copy=True)
        values.setflags(write=False)
        return values

    def subset(self, mask: pd.Series | NDArray[np.bool_]) -> Dataset:
        """A new dataset holding only the rows selected by ``mask``."""
        return Dataset(self._frame.loc[np.asarray(mask, dtype=bool)], self._schema)

    def with_frame(self, frame: pd.DataFrame) -> Dataset:
        """A new dataset with the same schema over a derived frame."""
        return Dataset(frame, self._schema)

    def records(self) -> Iterator[Observation]:
        """Yield rows as :class:`Observation` objects, in source order."""
        outcome = self.column_for(ColumnRole.OUTCOME)
        running = self.column_for(ColumnRole.RUNNING)
        treatment = self.column_for(ColumnRole.TREATMENT)
        group = self.column_for(ColumnRole.GROUP)
        unit = self.column_for(ColumnRole.UNIT)
        time = self.column_for(ColumnRole.TIME)
        covariates = self._schema.columns_for(ColumnRole.COVARIATE)

        def _get(row: pd.Series, name: str | None) -> Any:
            return None if name is None else row[name]

        for index, row in self._frame.iterrows():
            yield Observation(
                index=index,
                outcome=_get(row, outcome),
                running=_get(row, running),
                treatment=_get(row, treatment),
                group=_get(row, group),
                unit=_get(row, unit),
                time=_get(row, time),
                covariates={name: row[name] for name in covariates},
            )
