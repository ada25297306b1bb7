"""
Core target distribution classes and utilities.

Provides the base TargetDistribution class: the grid lifecycle, the update
protocol (variant-specific grid update, modifiers, bias cutoff, shift to
zero, normalization and the consistency checks), and the links to the
external bias, free energy and bias owner a distribution reads from.
"""

from __future__ import annotations

import logging
import weakref
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any, ClassVar, NamedTuple

import numpy as np
import numpy.typing as npt
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from pytargetdist.bias import BiasOwner
from pytargetdist.exceptions import (
    GridError,
    LinkError,
    NormalizationError,
    TargetDistException,
)
from pytargetdist.grid import Grid
from pytargetdist.integration import integrate, integration_weights
from pytargetdist.modifiers import TargetDistModifier, WellTemperedModifier

log = logging.getLogger(__name__)

NORMALIZATION_THRESHOLD = 0.1
NONNEGATIVE_THRESHOLD = -0.02

OPTIONS = ("bias_cutoff", "welltempered_factor", "shift_to_zero", "normalize")

GRID_LINKS = {
    "bias": "bias",
    "bias_withoutcutoff": "bias without cutoff",
    "fes": "free energy",
}


class GridPair(NamedTuple):
    """A value grid together with its negative log grid."""

    values: Grid
    log_values: Grid
    reweight: bool


def negative_log(values: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
    """Elementwise ``-ln(values)``; zero gives ``inf`` and negatives ``nan``."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return -np.log(values)


class TargetDistribution(BaseModel, ABC):
    """
    Base class for target distributions defined on a grid.

    A target distribution owns a value grid and the grid of its negative
    logarithm (shifted such that its minimum is zero), and optionally a
    second, independently bounded pair used for computing a reweighting
    factor. The grids are allocated by :meth:`setup_grids` and are only
    modified through :meth:`update`.

    Subclasses either implement :meth:`get_value` (static distributions
    with a closed form) or override :meth:`update_grid` and populate and
    normalize the grids themselves (distributions driven by external grids).

    Options shared by all variants, accepted only where listed in
    ``supported_options``:

    - ``bias_cutoff``: enable the bias cutoff transform with this cutoff value.
    - ``welltempered_factor``: broaden the distribution as :math:`p^{1/\\gamma}`.
    - ``shift_to_zero``: shift the minimum of the distribution to zero.
    - ``normalize``: renormalize the distribution after every update.

    Attributes:
        type: Variant tag.
        name: Label used in messages, defaults to the type.
    """

    model_config = ConfigDict(extra="forbid")

    type: str
    name: str = ""
    bias_cutoff: float = 0.0
    welltempered_factor: float = 0.0
    shift_to_zero: bool = False
    normalize: bool = False

    supported_options: ClassVar[frozenset[str]] = frozenset()
    normalized_by_default: ClassVar[bool] = False

    _dynamic: bool = PrivateAttr(default=False)
    _force_normalization: bool = PrivateAttr(default=False)
    _check_normalization: bool = PrivateAttr(default=True)
    _check_nonnegative: bool = PrivateAttr(default=True)
    _bias_cutoff_active: bool = PrivateAttr(default=False)
    _needs_bias_grid: bool = PrivateAttr(default=False)
    _needs_bias_withoutcutoff_grid: bool = PrivateAttr(default=False)
    _needs_fes_grid: bool = PrivateAttr(default=False)
    _dimension: int = PrivateAttr(default=0)
    _arguments: list[str] = PrivateAttr(default_factory=list)
    _grid: Grid | None = PrivateAttr(default=None)
    _log_grid: Grid | None = PrivateAttr(default=None)
    _reweight_grid_active: bool = PrivateAttr(default=False)
    _reweight_grid: Grid | None = PrivateAttr(default=None)
    _log_reweight_grid: Grid | None = PrivateAttr(default=None)
    _modifiers: list[TargetDistModifier] = PrivateAttr(default_factory=list)
    _links: dict[str, weakref.ref[Grid]] = PrivateAttr(default_factory=dict)
    _ves_bias: weakref.ref[BiasOwner] | None = PrivateAttr(default=None)
    _static_values: dict[bool, npt.NDArray[np.float64]] = PrivateAttr(
        default_factory=dict
    )

    @model_validator(mode="before")
    @classmethod
    def default_name(cls, data: Any) -> Any:
        """Use the type as name when no name is given."""
        if isinstance(data, dict) and not data.get("name"):
            type_field = cls.model_fields["type"]
            data = {**data, "name": data.get("type", type_field.default)}
        return data

    @model_validator(mode="after")
    def configure_options(self) -> TargetDistribution:
        """Check the option combination and set the flags that follow from it."""
        unsupported = [
            option
            for option in OPTIONS
            if getattr(self, option) and option not in self.supported_options
        ]
        if unsupported:
            msg = f"{self.name}: this target distribution does not support {', '.join(unsupported)}"
            raise ValueError(msg)

        if self.normalized_by_default:
            self.set_forced_normalization()

        if self.bias_cutoff < 0.0:
            msg = f"{self.name}: negative value in bias_cutoff does not make sense"
            raise ValueError(msg)
        if self.bias_cutoff > 0.0:
            self.setup_bias_cutoff()

        if self.welltempered_factor < 0.0:
            msg = f"{self.name}: negative value in welltempered_factor does not make sense"
            raise ValueError(msg)
        if self.welltempered_factor > 0.0:
            if self._bias_cutoff_active:
                msg = f"{self.name}: using welltempered_factor with bias cutoff is not allowed"
                raise ValueError(msg)
            self.add_modifier(WellTemperedModifier(factor=self.welltempered_factor))

        if self.shift_to_zero:
            if self._bias_cutoff_active:
                msg = f"{self.name}: using shift_to_zero with bias cutoff is not allowed"
                raise ValueError(msg)
            self._check_nonnegative = False

        if self.normalize:
            if self.shift_to_zero:
                msg = f"{self.name}: using normalize with shift_to_zero is not needed, the target distribution will be automatically normalized"
                raise ValueError(msg)
            if self._bias_cutoff_active:
                msg = f"{self.name}: using normalize with bias cutoff is not allowed, the target distribution will be automatically normalized"
                raise ValueError(msg)
            self.set_forced_normalization()
        return self

    # -- configuration state -------------------------------------------------

    @property
    def is_static(self) -> bool:
        return not self._dynamic

    @property
    def is_dynamic(self) -> bool:
        return self._dynamic

    def set_static(self) -> None:
        self._dynamic = False

    def set_dynamic(self) -> None:
        self._dynamic = True

    @property
    def forced_normalization(self) -> bool:
        return self._force_normalization

    def set_forced_normalization(self) -> None:
        self._force_normalization = True
        self._check_normalization = False

    def unset_forced_normalization(self) -> None:
        self._force_normalization = False
        self._check_normalization = True

    @property
    def check_normalization(self) -> bool:
        return self._check_normalization

    @property
    def check_nonnegative(self) -> bool:
        return self._check_nonnegative

    @property
    def bias_cutoff_active(self) -> bool:
        return self._bias_cutoff_active

    def setup_bias_cutoff(self) -> None:
        """
        Activate the bias cutoff.

        The cutoff needs the bias without cutoff, makes the distribution
        dynamic and takes over the normalization. The normalization check is
        switched off as the cutoff distribution includes a derivative factor.
        """
        if "bias_cutoff" not in self.supported_options:
            msg = f"{self.name}: this target distribution does not support a bias cutoff"
            raise TargetDistException(msg)
        self._bias_cutoff_active = True
        self.set_bias_withoutcutoff_grid_needed()
        self.set_dynamic()
        self._check_normalization = False
        self._force_normalization = False

    @property
    def bias_grid_needed(self) -> bool:
        return self._needs_bias_grid

    @property
    def bias_withoutcutoff_grid_needed(self) -> bool:
        return self._needs_bias_withoutcutoff_grid

    @property
    def fes_grid_needed(self) -> bool:
        return self._needs_fes_grid

    def set_bias_grid_needed(self) -> None:
        self._needs_bias_grid = True

    def set_bias_withoutcutoff_grid_needed(self) -> None:
        self._needs_bias_withoutcutoff_grid = True

    def set_fes_grid_needed(self) -> None:
        self._needs_fes_grid = True

    @property
    def modifiers(self) -> tuple[TargetDistModifier, ...]:
        return tuple(self._modifiers)

    def add_modifier(self, modifier: TargetDistModifier) -> None:
        """Append a modifier; modifiers are applied in the order they were added."""
        self._modifiers.append(modifier)

    def description(self) -> str:
        return f"Type: {self.type}"

    # -- dimension and grids -------------------------------------------------

    @property
    def dimension(self) -> int:
        return self._dimension

    def set_dimension(self, dimension: int) -> None:
        if self._dimension != 0:
            msg = f"{self.name}: the dimension of the target distribution has already been set"
            raise GridError(msg)
        self._dimension = dimension

    @property
    def arguments(self) -> list[str]:
        return list(self._arguments)

    def _check_grid_parameters(
        self,
        caller: str,
        arguments: Sequence[str],
        minimum: Sequence[float],
        maximum: Sequence[float],
        nbins: Sequence[int],
    ) -> None:
        for what, values in (
            ("arguments", arguments),
            ("minimum", minimum),
            ("maximum", maximum),
            ("nbins", nbins),
        ):
            if len(values) != self._dimension:
                msg = f"{self.name}: {caller}: mismatch between number of values given for grid parameters, {len(values)} values for {what} but the dimension is {self._dimension}"
                raise GridError(msg)

    def setup_grids(
        self,
        arguments: Sequence[str],
        minimum: Sequence[float],
        maximum: Sequence[float],
        nbins: Sequence[int],
        periodic: Sequence[bool] | None = None,
    ) -> None:
        """
        Allocate the target distribution grid and its log grid.

        The dimension is taken from the number of arguments if it has not
        been set already.

        Args:
            arguments: Names of the CV arguments.
            minimum: Lower grid bound per argument.
            maximum: Upper grid bound per argument.
            nbins: Number of bins per argument.
            periodic: Periodicity per argument.

        Raises:
            GridError: If the lengths do not agree with the dimension.
        """
        if self._dimension == 0:
            self.set_dimension(len(arguments))
        self._check_grid_parameters("setup_grids", arguments, minimum, maximum, nbins)
        self._arguments = list(arguments)
        self._grid = Grid("targetdist", arguments, minimum, maximum, nbins, periodic)
        self._log_grid = Grid(
            "log_targetdist", arguments, minimum, maximum, nbins, periodic
        )
        self._static_values.pop(False, None)
        self.setup_additional_grids(arguments, minimum, maximum, nbins, periodic)

    def setup_reweight_grids(
        self,
        arguments: Sequence[str],
        minimum: Sequence[float],
        maximum: Sequence[float],
        nbins: Sequence[int],
        periodic: Sequence[bool] | None = None,
    ) -> None:
        """
        Allocate the reweighting grid pair and mark it active.

        Takes the same arguments as :meth:`setup_grids`; the bounds and bins
        may differ from those of the target distribution grid.
        """
        if self._dimension == 0:
            self.set_dimension(len(arguments))
        self._check_grid_parameters(
            "setup_reweight_grids", arguments, minimum, maximum, nbins
        )
        self._reweight_grid = Grid(
            "reweight", arguments, minimum, maximum, nbins, periodic
        )
        self._log_reweight_grid = Grid(
            "log_reweight", arguments, minimum, maximum, nbins, periodic
        )
        self._static_values.pop(True, None)
        self.set_reweight_grid_active()
        self.setup_additional_reweight_grids(arguments, minimum, maximum, nbins, periodic)

    def setup_additional_grids(
        self,
        arguments: Sequence[str],
        minimum: Sequence[float],
        maximum: Sequence[float],
        nbins: Sequence[int],
        periodic: Sequence[bool] | None,
    ) -> None:
        """Hook for variants that need grids of their own; called by :meth:`setup_grids`."""

    def setup_additional_reweight_grids(
        self,
        arguments: Sequence[str],
        minimum: Sequence[float],
        maximum: Sequence[float],
        nbins: Sequence[int],
        periodic: Sequence[bool] | None,
    ) -> None:
        """Hook called by :meth:`setup_reweight_grids`."""

    @property
    def target_dist_grid(self) -> Grid:
        if self._grid is None:
            msg = f"{self.name}: the grids have not been setup using setup_grids"
            raise GridError(msg)
        return self._grid

    @property
    def log_target_dist_grid(self) -> Grid:
        if self._log_grid is None:
            msg = f"{self.name}: the grids have not been setup using setup_grids"
            raise GridError(msg)
        return self._log_grid

    @property
    def reweight_grid_active(self) -> bool:
        return self._reweight_grid_active

    def set_reweight_grid_active(self) -> None:
        self._reweight_grid_active = True

    @property
    def reweight_grid(self) -> Grid:
        if self._reweight_grid is None:
            msg = f"{self.name}: the grids have not been setup using setup_reweight_grids"
            raise GridError(msg)
        return self._reweight_grid

    @property
    def log_reweight_grid(self) -> Grid:
        if self._log_reweight_grid is None:
            msg = f"{self.name}: the grids have not been setup using setup_reweight_grids"
            raise GridError(msg)
        return self._log_reweight_grid

    def value_grid(self, reweight: bool = False) -> Grid:
        """The target distribution grid, or the reweighting grid."""
        return self.reweight_grid if reweight else self.target_dist_grid

    def grid_pairs(self) -> Iterator[GridPair]:
        """The primary grid pair, followed by the reweighting pair when active."""
        yield GridPair(self.target_dist_grid, self.log_target_dist_grid, False)
        if self._reweight_grid_active:
            yield GridPair(self.reweight_grid, self.log_reweight_grid, True)

    def clear_log_target_dist_grid(self) -> None:
        self.log_target_dist_grid.clear()

    def clear_log_reweight_grid(self) -> None:
        self.log_reweight_grid.clear()

    # -- links to externally owned objects ------------------------------------

    def link_grid(self, kind: str, grid: Grid | None, reweight: bool = False) -> None:
        """
        Link an externally owned grid.

        Only a weak reference is kept; the owner must keep the grid alive for
        as long as updates read from it.

        Args:
            kind: One of ``"bias"``, ``"bias_withoutcutoff"`` or ``"fes"``.
            grid: The grid, or None to remove the link.
            reweight: Link the counterpart used for the reweighting grid.
        """
        if kind not in GRID_LINKS:
            msg = f"unknown grid link '{kind}', expected one of {sorted(GRID_LINKS)}"
            raise ValueError(msg)
        key = f"{kind}_rw" if reweight else kind
        if grid is None:
            self._links.pop(key, None)
        else:
            self._links[key] = weakref.ref(grid)

    def link_bias_grid(self, grid: Grid | None) -> None:
        self.link_grid("bias", grid)

    def link_bias_withoutcutoff_grid(self, grid: Grid | None) -> None:
        self.link_grid("bias_withoutcutoff", grid)

    def link_fes_grid(self, grid: Grid | None) -> None:
        self.link_grid("fes", grid)

    def link_bias_rw_grid(self, grid: Grid | None) -> None:
        self.link_grid("bias", grid, reweight=True)

    def link_bias_withoutcutoff_rw_grid(self, grid: Grid | None) -> None:
        self.link_grid("bias_withoutcutoff", grid, reweight=True)

    def link_fes_rw_grid(self, grid: Grid | None) -> None:
        self.link_grid("fes", grid, reweight=True)

    def linked_grid(
        self, kind: str, reweight: bool = False, size: int | None = None
    ) -> Grid:
        """
        Resolve a linked grid.

        Args:
            kind: Link kind, see :meth:`link_grid`.
            reweight: Resolve the reweighting counterpart.
            size: Expected number of grid points, checked when given.

        Raises:
            LinkError: If the grid has not been linked or no longer exists.
            GridError: If the grid does not have the expected size.
        """
        key = f"{kind}_rw" if reweight else kind
        ref = self._links.get(key)
        grid = ref() if ref is not None else None
        what = GRID_LINKS[kind] + (" reweight" if reweight else "")
        if grid is None:
            msg = f"{self.name}: the {what} grid has to be linked"
            raise LinkError(msg)
        if size is not None and grid.size != size:
            msg = f"{self.name}: the linked {what} grid has {grid.size} points but the target distribution grid has {size}"
            raise GridError(msg)
        return grid

    def link_ves_bias(self, bias: BiasOwner | None) -> None:
        """Link the bias owner providing the temperature and the bias cutoff."""
        self._ves_bias = weakref.ref(bias) if bias is not None else None

    @property
    def ves_bias(self) -> BiasOwner:
        bias = self._ves_bias() if self._ves_bias is not None else None
        if bias is None:
            msg = f"{self.name}: the VES bias has not been linked"
            raise LinkError(msg)
        return bias

    @property
    def beta(self) -> float:
        """Inverse temperature of the linked bias."""
        return self.ves_bias.beta

    # -- evaluation -----------------------------------------------------------

    @abstractmethod
    def get_value(self, point: npt.NDArray[np.float64]) -> float:
        """
        Value of the distribution at a single point.

        Raises:
            NotImplementedError: For variants that can only be evaluated on the grid.
        """
        msg = f"get_value not implemented for {self.type}"
        raise NotImplementedError(msg)

    def get_values(self, points: npt.NDArray[np.float64]) -> npt.NDArray[np.float64]:
        """Values at many points, shape ``(npoints, dimension)``; override to vectorize."""
        return np.array([self.get_value(point) for point in points], dtype=float)

    def update_grid(self) -> None:
        """
        Populate the grids; the first step of :meth:`update`.

        The default evaluates :meth:`get_values` on every grid point. The
        evaluation of a static distribution is done once and reused.
        """
        for pair in self.grid_pairs():
            values = self._static_values.get(pair.reweight)
            if values is None:
                values = self.get_values(pair.values.points)
                self._static_values[pair.reweight] = values
            pair.values.set_values(values)
            pair.log_values.set_values(negative_log(values))
            pair.log_values.set_min_to_zero()

    def update(self) -> None:
        """
        Recompute the target distribution grids.

        Runs :meth:`update_grid`, applies the modifiers in order, then the
        bias cutoff, the shift to zero or the forced normalization, and
        finally logs a warning if the grid is not normalized or has
        negative values.
        """
        log.debug("%s: updating the target distribution grid", self.name)
        self.update_grid()

        for modifier in self._modifiers:
            self.apply_modifier_to_grid(modifier)

        if self._bias_cutoff_active:
            self.update_bias_cutoff_for_target_dist_grid()
        elif self.shift_to_zero:
            self.set_minimum_of_target_dist_grid_to_zero()
        elif self._force_normalization:
            self.normalize_target_dist_grid()

        if self._check_normalization and not self._bias_cutoff_active:
            normalization = self.integrate_grid(self.target_dist_grid)
            if (
                normalization < 1.0 - NORMALIZATION_THRESHOLD
                or normalization > 1.0 + NORMALIZATION_THRESHOLD
            ):
                log.warning(
                    "the target distribution grid in %s is not properly normalized, integrating over the grid gives: %g - You can avoid this problem by using the normalize option",
                    self.name,
                    normalization,
                )

        if self._check_nonnegative:
            min_value = self.target_dist_grid.min_value
            if min_value < NONNEGATIVE_THRESHOLD:
                log.warning(
                    "the target distribution grid in %s has negative values, the lowest value is: %g - You can avoid this problem by using the shift_to_zero option",
                    self.name,
                    min_value,
                )

    def apply_modifier_to_grid(self, modifier: TargetDistModifier) -> None:
        """Apply a modifier to every active grid pair and renormalize."""
        for pair in self.grid_pairs():
            weights = integration_weights(pair.values)
            values = modifier.modify(pair.values.values.copy(), pair.values.points)
            norm = float(np.dot(weights, values))
            if norm <= 0.0:
                msg = f"{self.name}: the {modifier.type} modifier gives a distribution on the {pair.values.label} grid that cannot be normalized"
                raise NormalizationError(msg)
            pair.values.set_values(values)
            pair.log_values.set_values(negative_log(values))
            pair.values.scale_all_values_and_derivatives(1.0 / norm)
            pair.log_values.set_min_to_zero()

    def update_bias_cutoff_for_target_dist_grid(self) -> None:
        """
        Apply the bias cutoff to every active grid pair.

        Each value :math:`p` becomes :math:`p S d` normalized by the integral of
        :math:`p S`, where :math:`S` is the switching factor and :math:`d` the
        derivative factor at the value of the bias without cutoff. The log
        grids are left as they are.
        """
        bias_owner = self.ves_bias
        if not bias_owner.bias_cutoff_active:
            msg = f"{self.name}: the linked VES bias does not have an active bias cutoff"
            raise LinkError(msg)
        for pair in self.grid_pairs():
            bias = self.linked_grid(
                "bias_withoutcutoff", reweight=pair.reweight, size=pair.values.size
            )
            weights = integration_weights(pair.values)
            switch, deriv_factor = bias_owner.bias_cutoff_switching_function(bias.values)
            # the switching factor comes from p(s)
            values = pair.values.values * switch
            norm = float(np.dot(weights, values))
            if norm <= 0.0:
                msg = f"{self.name}: the bias cutoff leaves nothing of the distribution on the {pair.values.label} grid"
                raise NormalizationError(msg)
            # the derivative factor comes from the derivative of V(s)
            pair.values.set_values(values * deriv_factor)
            pair.values.scale_all_values_and_derivatives(1.0 / norm)

    def set_minimum_of_target_dist_grid_to_zero(self) -> None:
        for pair in self.grid_pairs():
            pair.values.set_min_to_zero()
        self.normalize_target_dist_grid()
        self.update_log_target_dist_grid()

    def normalize_target_dist_grid(self) -> None:
        """
        Divide every active value grid by its integral.

        Raises:
            NormalizationError: If an integral is not positive, unless the
                distribution is shifted to zero.
        """
        for pair in self.grid_pairs():
            normalization = self.integrate_grid(pair.values)
            if normalization <= 0.0:
                if self.shift_to_zero:
                    log.warning(
                        "%s: integrating over the %s grid gives %g, leaving it unnormalized",
                        self.name,
                        pair.values.label,
                        normalization,
                    )
                    continue
                msg = f"{self.name}: something went wrong trying to normalize the target distribution, integrating over the {pair.values.label} grid gives {normalization}"
                raise NormalizationError(msg)
            pair.values.scale_all_values_and_derivatives(1.0 / normalization)

    def update_log_target_dist_grid(self) -> None:
        """Recompute the log grids from the value grids."""
        for pair in self.grid_pairs():
            pair.log_values.set_values(negative_log(pair.values.values))
            pair.log_values.set_min_to_zero()

    # -- marginals and restarts -----------------------------------------------

    @staticmethod
    def integrate_grid(grid: Grid) -> float:
        return integrate(grid)

    @staticmethod
    def normalize_grid(grid: Grid) -> float:
        """Normalize a grid in place and return the normalization it had."""
        normalization = integrate(grid)
        grid.scale_all_values_and_derivatives(1.0 / normalization)
        return normalization

    @staticmethod
    def get_marginal_distribution_grid(grid: Grid, arguments: Sequence[str]) -> Grid:
        """
        Marginal distribution over a subset of the grid arguments.

        The values are summed over the other arguments and scaled with the
        bin volume of the summed-over arguments.

        Args:
            grid: Distribution grid of dimension two or more.
            arguments: Names of the arguments to keep.

        Returns:
            Grid: The marginal distribution.
        """
        if grid.dimension <= 1:
            msg = "doesn't make sense calculating the marginal distribution for a one-dimensional distribution"
            raise GridError(msg)
        if len(arguments) >= grid.dimension:
            msg = "the number of arguments for the marginal distribution should be less than the dimension of the full distribution"
            raise GridError(msg)
        unknown = [name for name in arguments if name not in grid.arguments]
        if unknown or len(set(arguments)) != len(arguments):
            msg = f"problem with the arguments of the marginal: {list(arguments)} for a grid over {grid.arguments}"
            raise GridError(msg)

        marginal = grid.project(arguments)
        integrated_volume = grid.bin_volume
        for name in arguments:
            integrated_volume /= grid.dx[grid.arguments.index(name)]
        marginal.scale_all_values_and_derivatives(integrated_volume)
        return marginal

    def get_marginal(self, arguments: Sequence[str]) -> Grid:
        return self.get_marginal_distribution_grid(self.target_dist_grid, arguments)

    def read_in_restart_target_dist_grid(self, path: str | Path) -> None:
        """
        Restore the target distribution grid from a previously written file.

        Raises:
            TargetDistException: If the distribution is static.
            GridError: If the file is missing or the grid has the wrong size.
        """
        if not self.is_dynamic:
            msg = f"{self.name}: reading a restart grid should only be used for dynamically updated target distributions"
            raise TargetDistException(msg)
        path = Path(path)
        if not path.is_file():
            msg = f"{self.name}: problem with reading previous target distribution when restarting, cannot find file {path}"
            raise GridError(msg)
        restart_grid = Grid.from_file(path)
        if restart_grid.size != self.target_dist_grid.size:
            msg = f"{self.name}: problem with reading previous target distribution when restarting, the grid is not of the correct size!"
            raise GridError(msg)
        self.target_dist_grid.set_values(restart_grid.values)
        self.update_log_target_dist_grid()
        log.info("%s: restarted the target distribution from %s", self.name, path)
