"""
Unit tests for the Grid class.

Tests for grid geometry, point ordering, value manipulation, projections
and the grid file format.
"""

from __future__ import annotations

import numpy as np
import pytest

from pytargetdist.exceptions import GridError
from pytargetdist.grid import Grid


class TestGridGeometry:
    """Test grid construction and point layout."""

    def test_non_periodic_points_include_both_bounds(self):
        """A non-periodic axis with n bins has n + 1 points."""
        grid = Grid("p", ["x"], [0.0], [1.0], [4])
        assert grid.shape == (5,)
        assert grid.size == 5
        assert len(grid) == 5
        np.testing.assert_allclose(grid.points[:, 0], [0.0, 0.25, 0.5, 0.75, 1.0])

    def test_periodic_points_exclude_upper_bound(self):
        """A periodic axis with n bins has n points."""
        grid = Grid("p", ["phi"], [-np.pi], [np.pi], [4], periodic=[True])
        assert grid.shape == (4,)
        np.testing.assert_allclose(
            grid.points[:, 0], [-np.pi, -np.pi / 2, 0.0, np.pi / 2]
        )

    def test_first_argument_runs_fastest(self):
        """The flat index runs fastest over the first argument."""
        grid = Grid("p", ["x", "y"], [0.0, 10.0], [2.0, 11.0], [2, 1])
        expected = [
            [0.0, 10.0],
            [1.0, 10.0],
            [2.0, 10.0],
            [0.0, 11.0],
            [1.0, 11.0],
            [2.0, 11.0],
        ]
        np.testing.assert_allclose(grid.points, expected)

    def test_get_point_and_index_agree(self):
        """get_index inverts get_point."""
        grid = Grid("p", ["x", "y"], [-1.0, 0.0], [1.0, 3.0], [8, 6])
        for index in (0, 7, 20, grid.size - 1):
            assert grid.get_index(grid.get_point(index)) == index

    def test_spacing_and_bin_volume(self):
        """dx is the bin width and the bin volume their product."""
        grid = Grid("p", ["x", "y"], [0.0, 0.0], [1.0, 2.0], [10, 4])
        np.testing.assert_allclose(grid.dx, [0.1, 0.5])
        assert grid.bin_volume == pytest.approx(0.05)
        assert grid.dimension == 2

    @pytest.mark.parametrize(
        ("minimum", "maximum", "nbins"),
        [
            ([0.0, 0.0], [1.0], [10]),
            ([1.0], [0.0], [10]),
            ([0.0], [1.0], [0]),
        ],
    )
    def test_invalid_parameters(self, minimum, maximum, nbins):
        """Inconsistent or empty grid parameters are rejected."""
        with pytest.raises(GridError):
            Grid("p", ["x"], minimum, maximum, nbins)

    def test_point_outside_grid(self):
        """Points outside the grid have no index."""
        grid = Grid("p", ["x"], [0.0], [1.0], [4])
        with pytest.raises(GridError, match="outside the grid"):
            grid.get_index([2.0])


class TestGridValues:
    """Test value and derivative manipulation."""

    def test_set_values_checks_size(self):
        """set_values needs one value per point."""
        grid = Grid("p", ["x"], [0.0], [1.0], [4])
        with pytest.raises(GridError, match="expected 5 values"):
            grid.set_values(np.ones(4))

    def test_scale_values_and_derivatives(self):
        """Scaling applies to values and derivatives alike."""
        grid = Grid("p", ["x"], [0.0], [1.0], [4], use_derivatives=True)
        grid.set_values(np.arange(5.0))
        grid.set_derivatives(2, [3.0])
        grid.scale_all_values_and_derivatives(2.0)
        np.testing.assert_allclose(grid.values, [0.0, 2.0, 4.0, 6.0, 8.0])
        np.testing.assert_allclose(grid.get_derivatives(2), [6.0])

    def test_derivatives_not_stored(self):
        """Grids without derivatives refuse derivative access."""
        grid = Grid("p", ["x"], [0.0], [1.0], [4])
        assert not grid.has_derivatives
        with pytest.raises(GridError, match="does not store derivatives"):
            grid.get_derivatives(0)

    def test_set_min_to_zero(self):
        """The smallest value becomes zero."""
        grid = Grid("p", ["x"], [0.0], [1.0], [4])
        grid.set_values([3.0, 2.0, 5.0, 2.5, 4.0])
        grid.set_min_to_zero()
        np.testing.assert_allclose(grid.values, [1.0, 0.0, 3.0, 0.5, 2.0])
        assert grid.min_value == 0.0
        assert grid.max_value == 3.0

    def test_clear(self):
        grid = Grid("p", ["x"], [0.0], [1.0], [4])
        grid.set_values(np.ones(5))
        grid.clear()
        assert not grid.values.any()

    def test_copy_is_independent(self):
        """A copy does not share values with the original."""
        grid = Grid("p", ["x"], [0.0], [1.0], [4])
        other = grid.copy("q")
        other.set_value(0, 1.0)
        assert other.label == "q"
        assert grid.get_value(0) == 0.0


class TestGridProjection:
    """Test projecting grids onto a subset of arguments."""

    def test_project_sums_dropped_axis(self):
        """Values are summed over the dropped argument."""
        grid = Grid("p", ["x", "y"], [0.0, 0.0], [2.0, 1.0], [2, 1])
        grid.set_values(np.arange(6.0))
        projection = grid.project(["x"])
        assert projection.arguments == ["x"]
        np.testing.assert_allclose(projection.values, [0.0 + 3.0, 1.0 + 4.0, 2.0 + 5.0])

        projection = grid.project(["y"])
        np.testing.assert_allclose(projection.values, [3.0, 12.0])

    def test_project_keeps_requested_order(self):
        """Arguments of the projection are in the requested order."""
        grid = Grid("p", ["x", "y", "z"], [0.0] * 3, [1.0] * 3, [1, 2, 3])
        grid.set_values(np.arange(float(grid.size)))
        projection = grid.project(["z", "x"])
        assert projection.arguments == ["z", "x"]
        assert projection.shape == (4, 2)
        full = grid.values.reshape(grid.shape, order="F")
        expected = full.sum(axis=1).T.reshape(-1, order="F")
        np.testing.assert_allclose(projection.values, expected)

    def test_project_unknown_argument(self):
        grid = Grid("p", ["x", "y"], [0.0, 0.0], [1.0, 1.0], [2, 2])
        with pytest.raises(GridError, match="no argument named 'w'"):
            grid.project(["w"])


class TestGridFile:
    """Test writing and reading grid files."""

    def test_write_header(self, tmp_path):
        """The header lists the fields and the grid settings."""
        path = tmp_path / "grid.data"
        grid = Grid("targetdist", ["d1"], [0.5], [2.5], [4], periodic=[False])
        grid.write(path)
        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "#! FIELDS d1 targetdist"
        assert "#! SET min_d1 0.5" in lines
        assert "#! SET max_d1 2.5" in lines
        assert "#! SET nbins_d1 4" in lines
        assert "#! SET periodic_d1 false" in lines
        assert len([line for line in lines if not line.startswith("#!")]) == 5

    def test_read_written_grid(self, tmp_path):
        """A written grid reads back with the same geometry and values."""
        path = tmp_path / "grid.data"
        grid = Grid(
            "targetdist", ["phi", "psi"], [-np.pi, -1.0], [np.pi, 1.0], [6, 3],
            periodic=[True, False],
        )
        rng = np.random.default_rng(seed=7)
        grid.set_values(rng.random(grid.size))
        grid.write(path, fmt="%.12e")

        read = Grid.from_file(path)
        assert read.label == "targetdist"
        assert read.arguments == ["phi", "psi"]
        assert read.periodic == [True, False]
        assert read.shape == grid.shape
        np.testing.assert_allclose(read.minimum, grid.minimum)
        np.testing.assert_allclose(read.maximum, grid.maximum)
        np.testing.assert_allclose(read.values, grid.values, rtol=1e-10)

    def test_missing_file(self, tmp_path):
        with pytest.raises(GridError, match="cannot find grid file"):
            Grid.from_file(tmp_path / "missing.data")

    def test_wrong_number_of_points(self, tmp_path):
        """The data has to match the size given in the header."""
        path = tmp_path / "grid.data"
        path.write_text(
            "#! FIELDS x p\n#! SET min_x 0\n#! SET max_x 1\n#! SET nbins_x 4\n"
            "#! SET periodic_x false\n0.0 1.0\n1.0 1.0\n",
            encoding="utf-8",
        )
        with pytest.raises(GridError, match="has 2 points, expected 5"):
            Grid.from_file(path)

    def test_incomplete_header(self, tmp_path):
        path = tmp_path / "grid.data"
        path.write_text("#! FIELDS x p\n#! SET min_x 0\n0.0 1.0\n", encoding="utf-8")
        with pytest.raises(GridError, match="max_x"):
            Grid.from_file(path)
