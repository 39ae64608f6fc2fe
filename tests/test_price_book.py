"""Tests for the batch book script."""

import importlib.util
import json
import sys
from pathlib import Path

import pytest

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "price_book.py"


@pytest.fixture(scope="module")
def price_book():
    spec = importlib.util.spec_from_file_location("price_book", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


BOOK = """id,spot,strike,rate,volatility,time
1,42,40.0,0.5,0.2,0.5
2,42,-1.0,0.5,0.2,0.5
3,42,41.0,0.5,0.2,0.5
"""


def _run(price_book, monkeypatch, tmp_path, *extra):
    book = tmp_path / "book.csv"
    book.write_text(BOOK)
    out = tmp_path / "prices.json"
    monkeypatch.setattr(sys, "argv", ["price_book.py", "--input", str(book),
                                      "--output", str(out), *extra])
    price_book.main()
    return out.read_text()


class TestNanPolicyRows:
    def test_out_of_domain_row_written_as_null(self, price_book, monkeypatch, tmp_path):
        text = _run(price_book, monkeypatch, tmp_path, "--errors", "nan")

        def reject(const):
            raise ValueError(f"non-standard JSON constant {const}")

        rows = json.loads(text, parse_constant=reject)
        assert [r["id"] for r in rows] == ["1", "2", "3"]
        assert rows[1]["price"] is None
        assert "error" in rows[1]
        assert rows[0]["price"] > 0 and rows[2]["price"] > 0

    def test_out_of_domain_row_counted_as_failed(self, price_book, monkeypatch,
                                                 tmp_path, capsys):
        _run(price_book, monkeypatch, tmp_path, "--errors", "nan")
        summary = capsys.readouterr().out
        assert "Priced: 2" in summary
        assert "Failed: 1" in summary
        assert "nan" not in summary.split("Sum:")[1]


class TestRaisePolicyRows:
    def test_whole_group_fails(self, price_book, monkeypatch, tmp_path, capsys):
        rows = json.loads(_run(price_book, monkeypatch, tmp_path))
        assert all(r["price"] is None for r in rows)
        assert "Failed: 3" in capsys.readouterr().out
