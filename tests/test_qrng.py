"""Tests for the deterministic low-discrepancy sequence."""

import numpy as np
import pytest

from nusgen.qrng import LowDiscrepancySequence, coprime_bases


class TestCoprimeBases:
    """Test base selection."""

    def test_first_bases(self):
        """Test that bases are the consecutive primes."""
        assert coprime_bases(1) == [2]
        assert coprime_bases(5) == [2, 3, 5, 7, 11]

    def test_invalid_count(self):
        """Test that zero streams are rejected."""
        with pytest.raises(ValueError):
            coprime_bases(0)


class TestLowDiscrepancySequence:
    """Test sequence values and state handling."""

    def test_first_values(self):
        """Test the first terms, which are nonzero in every stream."""
        seq = LowDiscrepancySequence(2)
        np.testing.assert_allclose(seq.advance(), [1 / 2, 1 / 3])
        np.testing.assert_allclose(seq.advance(), [1 / 4, 2 / 3])
        np.testing.assert_allclose(seq.advance(), [3 / 4, 1 / 9])
        np.testing.assert_allclose(seq.advance(), [1 / 8, 4 / 9])

    def test_values_attribute(self):
        """Test that the last values are kept on the instance."""
        seq = LowDiscrepancySequence(3)
        v = seq.advance()
        np.testing.assert_array_equal(seq.values, v)
        assert seq.count == 1

    def test_deterministic(self):
        """Test that two sequences with the same stream count agree."""
        a = LowDiscrepancySequence(3).draw(200)
        b = LowDiscrepancySequence(3).draw(200)
        np.testing.assert_array_equal(a, b)

    def test_draw_shape_and_range(self):
        """Test draw output shape and the unit interval."""
        out = LowDiscrepancySequence(4).draw(500)
        assert out.shape == (500, 4)
        assert np.all(out >= 0.0)
        assert np.all(out < 1.0)

    def test_no_repeats_within_period(self):
        """Test that a stream does not revisit values early on."""
        out = LowDiscrepancySequence(1).draw(1000)[:, 0]
        assert len(np.unique(out)) == 1000

    def test_discard_matches_draw(self):
        """Test that burn-in skips exactly the discarded values."""
        seq = LowDiscrepancySequence(2)
        seq.discard(100)
        expected = LowDiscrepancySequence(2).draw(101)[-1]
        np.testing.assert_array_equal(seq.advance(), expected)

    def test_reset(self):
        """Test that reset restarts the sequence."""
        seq = LowDiscrepancySequence(2)
        first = seq.draw(5)
        seq.reset()
        np.testing.assert_array_equal(seq.draw(5), first)

    def test_iteration(self):
        """Test the iterator protocol."""
        seq = LowDiscrepancySequence(1)
        it = iter(seq)
        assert next(it)[0] == 0.5
        assert next(it)[0] == 0.25

    def test_capacity_wraps(self):
        """Test that a carry past the last digit wraps to zero."""
        seq = LowDiscrepancySequence(1, capacity=1)
        assert [seq.advance()[0] for _ in range(3)] == [0.5, 0.0, 0.5]

    def test_low_discrepancy(self):
        """Test that each stream fills the unit interval evenly."""
        out = LowDiscrepancySequence(2).draw(1024)
        for k in range(2):
            counts, _ = np.histogram(out[:, k], bins=8, range=(0.0, 1.0))
            assert counts.max() - counts.min() <= 8

    @pytest.mark.parametrize("kwargs", [{"n_streams": 0}, {"n_streams": 2, "capacity": 0}])
    def test_invalid_arguments(self, kwargs):
        """Test constructor validation."""
        with pytest.raises(ValueError):
            LowDiscrepancySequence(**kwargs)
