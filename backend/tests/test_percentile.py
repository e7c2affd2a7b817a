"""Tests for the percentile calculator used by the duration box-plot."""

import numpy as np
import pytest

from backend.analysis.percentile import percentile


class TestPercentile:

    def test_interpolates_between_ranks(self):
        assert percentile([10, 20, 30, 40], 50) == 25.0
        assert percentile([10, 20, 30, 40], 25) == 17.5

    def test_empty_input_is_zero(self):
        assert percentile([], 50) == 0

    def test_single_value(self):
        assert percentile([5], 0) == 5
        assert percentile([5], 100) == 5

    def test_exact_ranks_need_no_interpolation(self):
        values = [100, 200, 300, 400, 500]
        assert percentile(values, 25) == 200
        assert percentile(values, 50) == 300
        assert percentile(values, 75) == 400

    def test_extremes_are_min_and_max(self):
        values = [3, 9, 27, 81]
        assert percentile(values, 0) == 3
        assert percentile(values, 100) == 81

    def test_does_not_sort_input(self):
        # Caller contract: input already sorted; unsorted input is taken as-is
        assert percentile([40, 10], 0) == 40

    @pytest.mark.parametrize("p", [0, 10, 33.3, 90, 100])
    def test_matches_numpy_linear_method(self, p):
        values = sorted([0, 50, 150, 250, 300, 301, 1024, 4918])
        assert percentile(values, p) == pytest.approx(np.percentile(values, p))

    @pytest.mark.parametrize("values", [
        [0.1, 0.2, 0.7, 1.3, 2.9, 4.857],
        [261, 149, 226, 151, 307, 198, 139, 217],
        [-36.4, -41.8, -42.7, -46.2, -50.8],
        [93.994, 94.465, 93.918],
    ])
    @pytest.mark.parametrize("p", [25, 50, 75])
    def test_quartiles_identical_to_numpy(self, values, p):
        ordered = sorted(values)
        assert percentile(ordered, p) == float(np.percentile(ordered, p))
