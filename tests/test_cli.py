"""Tests for the ``bsaccel`` command line."""

import pytest
from bsaccel.black_scholes import put_price
from bsaccel.cli import main


class TestPrice:
    def test_prints_one_line_per_strike(self, capsys):
        assert main(["price", "--strikes", "40", "40.5", "41"]) == 0
        lines = capsys.readouterr().out.split()
        assert len(lines) == 3
        assert abs(float(lines[0]) - put_price(42.0, 40.0, 0.5, 0.2, 0.5)) < 1e-9

    def test_market_flags(self, capsys):
        main(["price", "--spot", "100", "--rate", "0.05", "--vol", "0.25",
              "--time", "1", "--strikes", "95", "--backend", "loop"])
        got = float(capsys.readouterr().out)
        assert abs(got - put_price(100.0, 95.0, 0.05, 0.25, 1.0)) < 1e-9

    def test_domain_error_exits_2(self, capsys):
        with pytest.raises(SystemExit) as exc:
            main(["price", "--time", "0", "--strikes", "40"])
        assert exc.value.code == 2
        assert "time must be positive" in capsys.readouterr().err

    def test_nan_policy(self, capsys):
        main(["price", "--time", "0", "--strikes", "40", "--errors", "nan"])
        assert capsys.readouterr().out.strip() == "nan"

    def test_unknown_backend_rejected(self):
        with pytest.raises(SystemExit):
            main(["price", "--strikes", "40", "--backend", "abacus"])


class TestBench:
    def test_reports_sum_and_time(self, capsys):
        main(["bench", "--n", "1000", "--backend", "numpy", "--backend", "threads",
              "--workers", "2"])
        out = capsys.readouterr().out
        assert "strikes=1000" in out
        assert out.count("elapsed=") == 2
        assert "sum=" in out

    def test_default_backend(self, capsys):
        main(["bench", "--n", "1e3"])
        out = capsys.readouterr().out
        assert "numpy" in out and out.count("elapsed=") == 1

    def test_bad_n(self):
        with pytest.raises(SystemExit):
            main(["bench", "--n", "0"])


class TestBackends:
    def test_lists_all(self, capsys):
        main(["backends"])
        out = capsys.readouterr().out
        for name in ("loop", "numpy", "threads", "numba", "cupy"):
            assert name in out

    def test_verbose_flag(self, capsys):
        assert main(["-v", "backends"]) == 0
