import csv
import math

import pytest

from distlogreg.sweep import CSV_HEADER
from distlogreg.sweep_global import csl_main, dane_main, run_global_sweep


def _write_points(path, count):
    lines = []
    for i in range(count):
        positive = i % 2 == 0
        x1 = (1.0 + (i % 5) * 0.1) * (1 if positive else -1)
        x2 = (i % 3) * 0.5 + 0.1
        label = "1" if positive else "-1"
        lines.append(f"{label} 1:{x1} 2:{x2} 3:1")
    path.write_text("\n".join(lines) + "\n")


@pytest.fixture
def dataset(tmp_path):
    train = tmp_path / "train.svm"
    test = tmp_path / "test.svm"
    _write_points(train, 40)
    _write_points(test, 10)
    return f"{train},{test}"


def _args(dataset, output, start_mode="1", count="2"):
    return [dataset, str(output), "3", "-3", "-1", count, "2", start_mode]


def _read_rows(path):
    with open(path, newline="") as handle:
        return list(csv.reader(handle))


def test_csl_sweep_writes_one_row_per_lambda(dataset, tmp_path):
    output = tmp_path / "out.csv"
    assert csl_main(_args(dataset, output)) == 0
    rows = _read_rows(output)
    assert ",".join(rows[0]) == CSV_HEADER
    body = rows[1:]
    assert [row[1] for row in body] == ["0", "1"]
    assert all(row[0] == "csl-2" for row in body)
    assert float(body[0][3]) == -1.0
    assert float(body[-1][3]) == -3.0
    for row in body:
        assert math.isclose(float(row[2]), 10.0 ** float(row[3]), rel_tol=1e-4)
        assert 0.0 <= float(row[5]) <= 1.0
        assert 0.0 <= float(row[6]) <= 1.0
        assert 0 <= int(row[4]) <= 3


def test_dane_sweep_from_zeros(dataset, tmp_path):
    output = tmp_path / "dane.csv"
    assert dane_main(_args(dataset, output, start_mode="0")) == 0
    body = _read_rows(output)[1:]
    assert len(body) == 2
    assert all(row[0] == "dane-2" for row in body)
    assert all(0.0 <= float(row[5]) <= 1.0 for row in body)


def test_sweep_is_deterministic_for_a_seed(dataset, tmp_path):
    first = tmp_path / "a.csv"
    second = tmp_path / "b.csv"
    assert csl_main(_args(dataset, first)) == 0
    assert csl_main(_args(dataset, second)) == 0
    strip = lambda rows: [row[:7] for row in rows]
    assert strip(_read_rows(first)) == strip(_read_rows(second))


def test_wrong_argument_count_prints_usage(capsys):
    assert csl_main(["only", "two"]) == 1
    assert "Usage: sweep_csl" in capsys.readouterr().out


def test_bad_number_prints_usage(dataset, tmp_path, capsys):
    args = _args(dataset, tmp_path / "x.csv")
    args[2] = "not-a-number"
    assert dane_main(args) == 1
    assert "start_mode" in capsys.readouterr().out


def test_owa_start_mode_is_rejected(dataset, tmp_path):
    output = tmp_path / "owa.csv"
    assert csl_main(_args(dataset, output, start_mode="2")) == 1
    assert not output.exists()


def test_unknown_start_mode_is_rejected(dataset, tmp_path):
    assert csl_main(_args(dataset, tmp_path / "o.csv", start_mode="7")) == 1


def test_count_below_two_is_rejected(dataset, tmp_path):
    assert csl_main(_args(dataset, tmp_path / "o.csv", count="1")) == 1


def test_unopenable_output_fails(dataset, tmp_path, capsys):
    output = tmp_path / "missing" / "out.csv"
    assert csl_main(_args(dataset, output)) == 1
    assert "Failed to open output file" in capsys.readouterr().err


def test_unknown_method_raises():
    with pytest.raises(ValueError):
        run_global_sweep("owa", [])