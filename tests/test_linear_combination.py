"""Unit tests for linear combinations of target distributions."""

from __future__ import annotations

import numpy as np
import pytest
from pydantic import ValidationError

from pytargetdist.distributions import (
    GaussianDist,
    LinearCombinationDist,
    UniformDist,
    WellTemperedDist,
    build_target_distribution,
)
from pytargetdist.exceptions import GridError


@pytest.fixture
def two_gaussians():
    return {
        "type": "linear_combination",
        "distributions": [
            {"type": "gaussian", "centers": [-1.0], "sigmas": [0.3], "normalize": True},
            {"type": "gaussian", "centers": [1.0], "sigmas": [0.5], "normalize": True},
        ],
    }


class TestConfiguration:
    """Tests for building linear combinations."""

    def test_children_from_mappings(self, two_gaussians):
        dist = build_target_distribution(two_gaussians)
        assert isinstance(dist, LinearCombinationDist)
        assert all(isinstance(child, GaussianDist) for child in dist.distributions)
        np.testing.assert_allclose(dist.normalized_weights, [0.5, 0.5])

    def test_children_as_instances(self):
        first, second = UniformDist(), GaussianDist(centers=[0.0], sigmas=[1.0])
        dist = LinearCombinationDist(distributions=[first, second], weights=[1.0, 3.0])
        assert dist.distributions[0] is first
        assert dist.distributions[1] is second

    def test_weights_are_normalized(self):
        dist = LinearCombinationDist(
            distributions=[UniformDist(), UniformDist(), UniformDist()],
            weights=[1.0, 1.0, 2.0],
        )
        np.testing.assert_allclose(dist.normalized_weights, [0.25, 0.25, 0.5])
        assert dist.weights == [1.0, 1.0, 2.0]

    def test_needs_two_distributions(self):
        with pytest.raises(ValidationError, match="at least two distributions"):
            LinearCombinationDist(distributions=[UniformDist()])

    def test_weight_count(self):
        with pytest.raises(ValidationError, match="as many weights given as distributions"):
            LinearCombinationDist(distributions=[UniformDist(), UniformDist()], weights=[1.0])

    def test_invalid_child(self, two_gaussians):
        two_gaussians["distributions"][1]["type"] = "lorentzian"
        with pytest.raises(ValidationError, match="Unknown target distribution type 'lorentzian'"):
            build_target_distribution(two_gaussians)

    def test_unsupported_option(self, two_gaussians):
        two_gaussians["shift_to_zero"] = True
        with pytest.raises(ValidationError, match="does not support shift_to_zero"):
            build_target_distribution(two_gaussians)

    def test_inherits_needs_of_children(self):
        dist = LinearCombinationDist(
            distributions=[UniformDist(), WellTemperedDist(bias_factor=10.0)]
        )
        assert dist.is_dynamic
        assert dist.fes_grid_needed

        static = LinearCombinationDist(distributions=[UniformDist(), UniformDist()])
        assert static.is_static
        assert not static.fes_grid_needed

    def test_description_lists_children(self, two_gaussians):
        description = build_target_distribution(two_gaussians).description()
        assert description.startswith("Type: linear_combination, combining 2 distributions")
        assert description.count("Type: gaussian") == 2

    def test_get_value_not_supported(self, two_gaussians):
        with pytest.raises(NotImplementedError):
            build_target_distribution(two_gaussians).get_value(np.zeros(1))


class TestCombination:
    """Tests for combining the children on the grid."""

    def test_weighted_sum_of_children(self, grid_1d, two_gaussians):
        two_gaussians["weights"] = [1.0, 3.0]
        dist = build_target_distribution(two_gaussians)
        dist.setup_grids(**grid_1d)
        dist.update()
        first, second = dist.distributions
        expected = 0.25 * first.target_dist_grid.values + 0.75 * second.target_dist_grid.values
        np.testing.assert_allclose(dist.target_dist_grid.values, expected)
        assert dist.integrate_grid(dist.target_dist_grid) == pytest.approx(1.0)
        np.testing.assert_allclose(
            dist.log_target_dist_grid.values,
            -np.log(expected) + np.log(expected.max()),
            atol=1e-10,
        )

    def test_children_share_grid(self, grid_2d):
        dist = LinearCombinationDist(distributions=[UniformDist(), UniformDist()])
        dist.setup_grids(**grid_2d)
        for child in dist.distributions:
            assert child.dimension == 2
            assert child.target_dist_grid.shape == dist.target_dist_grid.shape

    def test_child_dimension_mismatch(self, grid_1d):
        dist = LinearCombinationDist(
            distributions=[UniformDist(), GaussianDist(centers=[[0.0, 0.0]], sigmas=[[1.0, 1.0]])]
        )
        with pytest.raises(GridError):
            dist.setup_grids(**grid_1d)

    def test_links_forwarded_to_children(self, grid_1d, ves_bias, harmonic_fes):
        dist = LinearCombinationDist(
            distributions=[GaussianDist(centers=[0.0], sigmas=[0.5]), WellTemperedDist(bias_factor=5.0)],
        )
        dist.setup_grids(**grid_1d)
        fes = harmonic_fes(grid_1d)
        dist.link_fes_grid(fes)
        dist.link_ves_bias(ves_bias)
        dist.update()
        well_tempered = dist.distributions[1]
        assert well_tempered.linked_grid("fes") is fes
        assert well_tempered.ves_bias is ves_bias
        assert dist.integrate_grid(dist.target_dist_grid) == pytest.approx(1.0, rel=1e-3)

    def test_normalize_option(self, grid_1d):
        """With normalize the combination of unnormalized children is normalized."""
        dist = LinearCombinationDist(
            distributions=[
                GaussianDist(centers=[0.0], sigmas=[10.0]),
                GaussianDist(centers=[0.0], sigmas=[20.0]),
            ],
            normalize=True,
        )
        dist.setup_grids(**grid_1d)
        dist.update()
        assert dist.integrate_grid(dist.target_dist_grid) == pytest.approx(1.0)

    def test_reweight_grids_propagate(self, grid_1d, two_gaussians):
        dist = build_target_distribution(two_gaussians)
        dist.setup_grids(**grid_1d)
        dist.setup_reweight_grids(["s"], [-2.0], [2.0], [80])
        for child in dist.distributions:
            assert child.reweight_grid_active
            assert child.reweight_grid.size == 81
        dist.update()
        first, second = dist.distributions
        expected = 0.5 * (first.reweight_grid.values + second.reweight_grid.values)
        np.testing.assert_allclose(dist.reweight_grid.values, expected)

    def test_nested_combination(self, grid_1d, two_gaussians):
        dist = build_target_distribution(
            {
                "type": "linear_combination",
                "distributions": [two_gaussians, {"type": "uniform"}],
                "weights": [3.0, 1.0],
            }
        )
        dist.setup_grids(**grid_1d)
        dist.update()
        inner, uniform = dist.distributions
        expected = 0.75 * inner.target_dist_grid.values + 0.25 / 6.0
        np.testing.assert_allclose(dist.target_dist_grid.values, expected)
