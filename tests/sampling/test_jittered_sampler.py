"""Tests for jittered-region sampling.

Verifies that:
1. Regions walk from their last added cell towards equal probability mass
2. Exactly one point is drawn from each region
3. The schedule always holds exactly round(d * prod(N)) points
"""

import numpy as np
import pytest

from nusgen.errors import SamplerExhaustedError
from nusgen.sampling import JitteredSampler, compute_density_conformance


class TestRegionGrowth:
    """Test the greedy partition of the grid."""

    def test_uniform_quadrants(self):
        """Test that a uniform 4x4 grid splits into four 2x2 blocks."""
        sampler = JitteredSampler((4, 4), 0.25, "1")
        schedule = sampler.generate()

        regions = [sorted(r.tolist()) for r in sampler.regions]
        assert regions == [
            [0, 1, 4, 5],
            [2, 3, 6, 7],
            [8, 9, 12, 13],
            [10, 11, 14, 15],
        ]
        # each step leaves the last cell for its neighbor nearest the centroid
        assert sampler.regions[0].tolist() == [0, 1, 5, 4]

        assert len(schedule) == 4
        for region in sampler.regions:
            assert np.count_nonzero(np.isin(schedule, region)) == 1

    def test_walk_from_last_cell(self):
        """Test region growth order on a ramp across the first axis."""
        # masses in units of 1/40 against a target of 40/3
        sampler = JitteredSampler((4, 4), 0.1875, "1 + x[0]")
        schedule = sampler.generate()

        assert [r.tolist() for r in sampler.regions] == [
            [3, 7, 11],
            [15, 14, 10, 6],
            [2, 1, 5, 9, 13, 12, 8],
        ]
        assert len(schedule) == 3

    def test_dead_end_stops_growth(self):
        """Test that a region stops when its last cell has no free neighbor."""
        # 1/3 of a uniform 4x4 grid is 5.33 cells
        sampler = JitteredSampler((4, 4), 0.1875, "1")
        sampler.generate()

        assert [r.tolist() for r in sampler.regions] == [
            [0, 1, 5, 4, 8],
            [2, 3, 7, 6, 10],
            [9, 13, 12],
        ]
        # 14 still borders the third region through 13
        covered = np.concatenate(sampler.regions)
        assert sorted(set(range(16)) - set(covered.tolist())) == [11, 14, 15]

    def test_regions_disjoint(self):
        """Test that no cell belongs to two regions."""
        sampler = JitteredSampler((12, 9), 0.1, "1 + x[0] * x[1] / (N[0] * N[1])")
        sampler.generate()

        cells = np.concatenate(sampler.regions)
        assert len(np.unique(cells)) == len(cells)
        assert cells.max() < 108

    def test_seed_is_densest_cell(self):
        """Test that the first region starts at the density peak."""
        sampler = JitteredSampler((10,), 0.2, "x[0]")
        sampler.generate()
        assert sampler.regions[0][0] == 9

    def test_region_mass_near_target(self):
        """Test that an unobstructed region stops at the cell closest to 1/n."""
        # 256 cells, n = 26: 10 cells (mass 10/256) beats 9 or 11
        sampler = JitteredSampler((16, 16), 0.1, "1")
        sampler.generate()
        assert len(sampler.regions[0]) == 10
        assert all(len(r) <= 10 for r in sampler.regions[:-1])


class TestJitteredSampler:
    """Test schedules produced by the jittered sampler."""

    def test_exact_count_uniform(self):
        """Test the exact point count on a uniform density."""
        schedule = JitteredSampler((16, 16), 0.1, "1").generate()
        assert len(schedule) == 26
        assert np.all(np.diff(schedule) > 0)

    def test_exact_count_nonuniform(self):
        """Test the exact point count on a smoothly varying density."""
        sampler = JitteredSampler((20, 20), 0.05, "1 + x[0] / N[0]")
        schedule = sampler.generate()

        assert len(schedule) == 20
        assert len(sampler.regions) == 20
        assert schedule.max() < 400

    @pytest.mark.parametrize("size", [200, 240, 320])
    @pytest.mark.parametrize("burn_in", [0, 100, 1000])
    def test_follows_density(self, size, burn_in):
        """Test conformance to a 1-D ramp across grid sizes and burn-in."""
        sampler = JitteredSampler((size,), 0.05, "1 + 3 * x[0] / N[0]", burn_in=burn_in)
        schedule = sampler.generate()

        assert len(schedule) == round(0.05 * size)
        quarter = size // 4
        assert np.count_nonzero(schedule < quarter) < np.count_nonzero(schedule >= size - quarter)

        _, p_value = compute_density_conformance(schedule, (size,), sampler.field)
        assert p_value > 0.001

    def test_3d(self):
        """Test a small 3-D grid."""
        schedule = JitteredSampler((6, 5, 4), 0.1, "1 + x[2]").generate()
        assert len(schedule) == 12
        assert schedule.max() < 120

    def test_zero_density(self):
        """Test that an all-zero density is exhausted."""
        with pytest.raises(SamplerExhaustedError):
            JitteredSampler((8, 8), 0.25, "0").generate()

    def test_deterministic(self):
        """Test that two runs give identical schedules and regions."""
        a = JitteredSampler((10, 10), 0.1, "exp(-x[0] / 5)")
        b = JitteredSampler((10, 10), 0.1, "exp(-x[0] / 5)")
        np.testing.assert_array_equal(a.generate(), b.generate())
        for ra, rb in zip(a.regions, b.regions):
            np.testing.assert_array_equal(ra, rb)

    def test_burn_in_changes_picks_only(self):
        """Test that burn-in moves representatives but not regions."""
        a = JitteredSampler((8, 8), 0.125, "1", burn_in=0)
        b = JitteredSampler((8, 8), 0.125, "1", burn_in=100)
        a.generate()
        b.generate()
        for ra, rb in zip(a.regions, b.regions):
            np.testing.assert_array_equal(ra, rb)

    def test_invalid_burn_in(self):
        """Test constructor validation."""
        with pytest.raises(ValueError):
            JitteredSampler((8, 8), 0.25, "1", burn_in=-1)
