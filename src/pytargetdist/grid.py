"""
Regular grids over named bounded variables.

Provides the Grid class used to store target distributions and the external
bias and free energy surfaces they are computed from. Grids follow the
PLUMED conventions: a non-periodic axis with ``nbins`` bins has ``nbins + 1``
points including both bounds, a periodic axis has ``nbins`` points, and the
flat point index runs fastest over the first argument.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from pathlib import Path

import numpy as np
import numpy.typing as npt

from pytargetdist.exceptions import GridError

log = logging.getLogger(__name__)

Reducer = Callable[..., npt.NDArray[np.float64]]


class Grid:
    """
    Multidimensional regular grid holding one value (and optionally one
    derivative per argument) at each point.

    Args:
        label: Name of the gridded field, used as the value column in files.
        arguments: Names of the grid arguments.
        minimum: Lower bound per argument.
        maximum: Upper bound per argument.
        nbins: Number of bins per argument.
        periodic: Periodicity per argument (default: all non-periodic).
        use_derivatives: Whether to store derivatives alongside values.
    """

    def __init__(
        self,
        label: str,
        arguments: Sequence[str],
        minimum: Sequence[float],
        maximum: Sequence[float],
        nbins: Sequence[int],
        periodic: Sequence[bool] | None = None,
        use_derivatives: bool = False,
    ) -> None:
        dimension = len(arguments)
        if periodic is None:
            periodic = [False] * dimension
        for what, seq in (
            ("minimum", minimum),
            ("maximum", maximum),
            ("nbins", nbins),
            ("periodic", periodic),
        ):
            if len(seq) != dimension:
                msg = f"Grid '{label}': {len(seq)} values given for {what} but there are {dimension} arguments"
                raise GridError(msg)
        if dimension == 0:
            msg = f"Grid '{label}': at least one argument is needed"
            raise GridError(msg)

        self.label = label
        self.arguments = list(arguments)
        self.minimum = np.asarray(minimum, dtype=float)
        self.maximum = np.asarray(maximum, dtype=float)
        self.nbins = [int(n) for n in nbins]
        self.periodic = [bool(p) for p in periodic]

        if np.any(self.maximum <= self.minimum):
            msg = f"Grid '{label}': maximum must be larger than minimum for every argument"
            raise GridError(msg)
        if any(n <= 0 for n in self.nbins):
            msg = f"Grid '{label}': the number of bins must be positive, got {self.nbins}"
            raise GridError(msg)

        self.dx = (self.maximum - self.minimum) / np.asarray(self.nbins, dtype=float)
        self.shape = tuple(
            n if pbc else n + 1 for n, pbc in zip(self.nbins, self.periodic, strict=True)
        )
        self.values = np.zeros(self.size)
        self.derivatives = (
            np.zeros((self.size, self.dimension)) if use_derivatives else None
        )
        self._points: npt.NDArray[np.float64] | None = None

    @property
    def dimension(self) -> int:
        """Number of grid arguments."""
        return len(self.arguments)

    @property
    def size(self) -> int:
        """Total number of grid points."""
        return int(np.prod(self.shape))

    def __len__(self) -> int:
        return self.size

    @property
    def bin_volume(self) -> float:
        """Volume of a single grid cell."""
        return float(np.prod(self.dx))

    @property
    def has_derivatives(self) -> bool:
        return self.derivatives is not None

    def axis_points(self, axis: int) -> npt.NDArray[np.float64]:
        """Coordinates of the points along one axis."""
        return self.minimum[axis] + self.dx[axis] * np.arange(self.shape[axis])

    @property
    def points(self) -> npt.NDArray[np.float64]:
        """Coordinates of all grid points, shape ``(size, dimension)``."""
        if self._points is None:
            indices = np.unravel_index(np.arange(self.size), self.shape, order="F")
            self._points = np.column_stack(
                [self.axis_points(axis)[idx] for axis, idx in enumerate(indices)]
            )
        return self._points

    def get_point(self, index: int) -> npt.NDArray[np.float64]:
        """Coordinates of the point with the given flat index."""
        return self.points[index].copy()

    def get_index(self, point: Sequence[float]) -> int:
        """Flat index of the grid point closest to ``point``."""
        if len(point) != self.dimension:
            msg = f"Grid '{self.label}': point has {len(point)} coordinates, expected {self.dimension}"
            raise GridError(msg)
        indices = np.rint((np.asarray(point, dtype=float) - self.minimum) / self.dx)
        indices = indices.astype(int)
        for axis, pbc in enumerate(self.periodic):
            if pbc:
                indices[axis] %= self.shape[axis]
        if np.any(indices < 0) or np.any(indices >= np.asarray(self.shape)):
            msg = f"Grid '{self.label}': point {list(point)} is outside the grid"
            raise GridError(msg)
        return int(np.ravel_multi_index(tuple(indices), self.shape, order="F"))

    def get_value(self, index: int) -> float:
        return float(self.values[index])

    def set_value(self, index: int, value: float) -> None:
        self.values[index] = value

    def set_values(self, values: npt.ArrayLike) -> None:
        """Replace all values at once."""
        values = np.asarray(values, dtype=float)
        if values.shape != (self.size,):
            msg = f"Grid '{self.label}': expected {self.size} values, got shape {values.shape}"
            raise GridError(msg)
        self.values = values.copy()

    def get_derivatives(self, index: int) -> npt.NDArray[np.float64]:
        if self.derivatives is None:
            msg = f"Grid '{self.label}' does not store derivatives"
            raise GridError(msg)
        return self.derivatives[index].copy()

    def set_derivatives(self, index: int, derivatives: Sequence[float]) -> None:
        if self.derivatives is None:
            msg = f"Grid '{self.label}' does not store derivatives"
            raise GridError(msg)
        self.derivatives[index] = derivatives

    @property
    def min_value(self) -> float:
        return float(np.min(self.values))

    @property
    def max_value(self) -> float:
        return float(np.max(self.values))

    def scale_all_values_and_derivatives(self, factor: float) -> None:
        self.values *= factor
        if self.derivatives is not None:
            self.derivatives *= factor

    def set_min_to_zero(self) -> None:
        """Shift all values such that the smallest one becomes zero."""
        self.values -= np.nanmin(self.values)

    def clear(self) -> None:
        self.values[:] = 0.0
        if self.derivatives is not None:
            self.derivatives[:] = 0.0

    def project(
        self, arguments: Sequence[str], reducer: Reducer = np.sum
    ) -> Grid:
        """
        Project the grid onto a subset of its arguments.

        The values along the dropped arguments are combined with ``reducer``,
        which is called as ``reducer(array, axis=axes)``.

        Args:
            arguments: Names of the arguments to keep.
            reducer: Reduction applied over the dropped axes.

        Returns:
            Grid: New grid over the kept arguments.
        """
        keep = [self._argument_index(name) for name in arguments]
        dropped = tuple(axis for axis in range(self.dimension) if axis not in keep)
        reduced = reducer(self.values.reshape(self.shape, order="F"), axis=dropped)
        # reduced axes keep their original relative order
        order = sorted(keep)
        reduced = np.moveaxis(reduced, [order.index(axis) for axis in keep], list(range(len(keep))))
        projection = Grid(
            self.label,
            [self.arguments[axis] for axis in keep],
            [self.minimum[axis] for axis in keep],
            [self.maximum[axis] for axis in keep],
            [self.nbins[axis] for axis in keep],
            periodic=[self.periodic[axis] for axis in keep],
        )
        projection.set_values(np.asarray(reduced).reshape(-1, order="F"))
        return projection

    def _argument_index(self, name: str) -> int:
        try:
            return self.arguments.index(name)
        except ValueError:
            msg = f"Grid '{self.label}' has no argument named '{name}', arguments are {self.arguments}"
            raise GridError(msg) from None

    def copy(self, label: str | None = None) -> Grid:
        """Deep copy of the grid, optionally under a new label."""
        other = Grid(
            self.label if label is None else label,
            self.arguments,
            self.minimum,
            self.maximum,
            self.nbins,
            periodic=self.periodic,
            use_derivatives=self.has_derivatives,
        )
        other.values = self.values.copy()
        if self.derivatives is not None:
            other.derivatives = self.derivatives.copy()
        return other

    def write(self, path: str | Path, fmt: str = "%14.9f") -> None:
        """
        Write the grid in the PLUMED grid text format.

        Args:
            path: Output file.
            fmt: Number format for every column.
        """
        fields = [*self.arguments, self.label]
        if self.derivatives is not None:
            fields += [f"der_{name}" for name in self.arguments]
        header = [f"FIELDS {' '.join(fields)}"]
        for axis, name in enumerate(self.arguments):
            header += [
                f"SET min_{name} {float(self.minimum[axis])!r}",
                f"SET max_{name} {float(self.maximum[axis])!r}",
                f"SET nbins_{name} {self.nbins[axis]}",
                f"SET periodic_{name} {'true' if self.periodic[axis] else 'false'}",
            ]
        columns = [self.points, self.values[:, None]]
        if self.derivatives is not None:
            columns.append(self.derivatives)
        np.savetxt(
            path,
            np.hstack(columns),
            fmt=fmt,
            header="\n".join(header),
            comments="#! ",
        )
        log.debug("wrote grid '%s' with %d points to %s", self.label, self.size, path)

    @classmethod
    def from_file(cls, path: str | Path, label: str | None = None) -> Grid:
        """
        Read a grid written in the PLUMED grid text format.

        Args:
            path: Input file.
            label: Label of the value column to read (default: the column
                following the coordinates).

        Returns:
            Grid: The grid read from file.

        Raises:
            GridError: If the file is missing or its header is incomplete.
        """
        path = Path(path)
        if not path.is_file():
            msg = f"cannot find grid file {path}"
            raise GridError(msg)

        fields: list[str] = []
        settings: dict[str, str] = {}
        with path.open(encoding="utf-8") as stream:
            for line in stream:
                if not line.startswith("#!"):
                    continue
                words = line[2:].split()
                if words and words[0] == "FIELDS":
                    fields = words[1:]
                elif len(words) == 3 and words[0] == "SET":
                    settings[words[1]] = words[2]

        arguments = [name for name in fields if f"min_{name}" in settings]
        if not arguments:
            msg = f"grid file {path} does not define any grid arguments"
            raise GridError(msg)
        try:
            minimum = [float(settings[f"min_{name}"]) for name in arguments]
            maximum = [float(settings[f"max_{name}"]) for name in arguments]
            nbins = [int(settings[f"nbins_{name}"]) for name in arguments]
        except KeyError as exc:
            msg = f"grid file {path} is missing the {exc.args[0]} header field"
            raise GridError(msg) from None
        periodic = [
            settings.get(f"periodic_{name}", "false").lower() == "true"
            for name in arguments
        ]

        value_label = fields[len(arguments)] if label is None else label
        derivative_fields = [f"der_{name}" for name in arguments]
        use_derivatives = all(name in fields for name in derivative_fields)

        grid = cls(
            value_label,
            arguments,
            minimum,
            maximum,
            nbins,
            periodic=periodic,
            use_derivatives=use_derivatives,
        )
        data = np.atleast_2d(np.loadtxt(path, comments="#"))
        if data.shape[0] != grid.size:
            msg = f"grid file {path} has {data.shape[0]} points, expected {grid.size} from its header"
            raise GridError(msg)
        value_column = fields.index(value_label) if label is not None else len(arguments)
        grid.set_values(data[:, value_column])
        if grid.derivatives is not None:
            grid.derivatives = data[:, [fields.index(f) for f in derivative_fields]]
        return grid

    def __repr__(self) -> str:
        return (
            f"Grid(label={self.label!r}, arguments={self.arguments}, "
            f"shape={self.shape})"
        )


__all__ = ["Grid"]
