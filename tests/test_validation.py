"""Tests for the backend validation toolkit."""

import numpy as np
import pytest
from bsaccel import MarketInputs
from bsaccel.validation import cross_validate, partition_check, stress_test

INPUTS = MarketInputs(spot=42.0, strikes=np.linspace(38.0, 46.0, 500),
                      rate=0.5, volatility=0.2, time=0.5)


class TestCrossValidate:
    def test_cpu_backends_consistent(self):
        result = cross_validate(INPUTS, ["loop", "numpy", "threads"])
        assert result["reference"] == "loop"
        for name in ("loop", "numpy", "threads"):
            assert result["max_discrepancy"][name] < 1e-10
        assert result["max_discrepancy"]["loop"] == 0.0

    def test_sums_agree(self):
        result = cross_validate(INPUTS, ["loop", "numpy"])
        assert abs(result["sums"]["loop"] - result["sums"]["numpy"]) < 1e-8

    def test_reference_falls_back_to_first(self):
        result = cross_validate(INPUTS, ["threads", "numpy"])
        assert result["reference"] == "threads"

    def test_default_runs_everything_available(self):
        result = cross_validate(INPUTS.with_strikes([40.0, 41.0]))
        ran = set(result["prices"])
        assert {"loop", "numpy", "threads"} <= ran
        assert ran.isdisjoint(result["skipped"])

    def test_float32_close_to_loop(self):
        result = cross_validate(INPUTS, ["loop", "numpy"], dtype="float32")
        assert result["max_discrepancy"]["numpy"] < 1e-3


class TestPartitionCheck:
    @pytest.mark.parametrize("n_parts", [1, 2, 3, 7, 500, 1000])
    def test_numpy(self, n_parts):
        result = partition_check(INPUTS, n_parts)
        assert result["max_abs_diff"] < 1e-12

    @pytest.mark.parametrize("backend", ["loop", "threads"])
    def test_other_backends(self, backend):
        small = INPUTS.with_strikes(INPUTS.strikes[:50])
        result = partition_check(small, 4, backend=backend)
        assert result["max_abs_diff"] < 1e-12

    def test_output_keys(self):
        result = partition_check(INPUTS, 2)
        assert set(result) == {"max_abs_diff", "identical"}
        assert isinstance(result["identical"], bool)

    def test_bad_parts(self):
        with pytest.raises(ValueError):
            partition_check(INPUTS, 0)


class TestStressTest:
    def test_output_shape(self):
        spots = np.array([0.9, 1.0, 1.1])
        vols = np.array([-0.05, 0.0, 0.05])
        rates = np.array([-0.01, 0.0, 0.01])
        result = stress_test(INPUTS, spots, vols, rates)
        assert result.shape == (3, 3, 3)

    def test_unshocked_cell_is_book_value(self):
        from bsaccel import price_inputs
        result = stress_test(INPUTS, [1.0], [0.0], [0.0])
        assert abs(result[0, 0, 0] - price_inputs(INPUTS).sum()) < 1e-8

    def test_monotone_in_spot(self):
        spots = np.array([0.8, 0.9, 1.0, 1.1, 1.2])
        result = stress_test(INPUTS, spots, [0.0], [0.0])
        assert np.all(np.diff(result[:, 0, 0]) > 0)
