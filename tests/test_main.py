"""Tests for the command-line render pipeline."""

import json

import pytest

from config import get_config
from main import (
    collect_documents,
    initialize_system,
    load_records,
    load_template,
    main,
    parse_arguments,
    run_render,
)
from template_studio.model.defaults import default_template


@pytest.fixture
def record_file(tmp_path, record_data):
    path = tmp_path / "record.json"
    path.write_text(json.dumps(record_data), encoding="utf-8")
    return path


@pytest.fixture
def rates_file(tmp_path):
    path = tmp_path / "rates.csv"
    path.write_text(
        "reference,description,unit,rate,currency\n"
        "COMP1-ITP-001,Inspector,Day,400,QAR\n",
        encoding="utf-8",
    )
    return path


def test_parse_arguments_defaults():
    args = parse_arguments(["--input", "record.json"])

    assert args.format == ["pdf"]
    assert args.kind == "invoice"
    assert args.zoom == 1.0
    assert not args.extract


def test_endpoint_argument_overrides_config():
    initialize_system(parse_arguments(["--input", "doc.pdf", "--extract", "--endpoint", "http://localhost:9000"]))
    assert get_config("extraction.endpoint") == "http://localhost:9000"


def test_load_records_accepts_object_or_list(tmp_path, record_file, record_data):
    assert load_records(str(record_file)) == [record_data]

    many = tmp_path / "many.json"
    many.write_text(json.dumps([record_data, record_data]), encoding="utf-8")
    assert len(load_records(str(many))) == 2

    scalar = tmp_path / "scalar.json"
    scalar.write_text("42", encoding="utf-8")
    with pytest.raises(ValueError):
        load_records(str(scalar))


def test_load_template_forms(tmp_path):
    assert load_template(None).element("el_table") is not None

    template = default_template().renamed("Stored")
    flat = tmp_path / "flat.json"
    flat.write_text(json.dumps(template.to_dict()), encoding="utf-8")
    row = tmp_path / "row.json"
    row.write_text(json.dumps(template.to_row()), encoding="utf-8")

    assert load_template(str(flat)).name == "Stored"
    assert load_template(str(row)).elements == template.elements


def test_collect_documents(tmp_path):
    (tmp_path / "b.pdf").write_bytes(b"%PDF")
    (tmp_path / "a.png").write_bytes(b"\x89PNG")
    (tmp_path / "notes.txt").write_text("skip me", encoding="utf-8")

    assert [p.name for p in collect_documents(str(tmp_path))] == ["a.png", "b.pdf"]
    with pytest.raises(FileNotFoundError):
        collect_documents(str(tmp_path / "missing"))


def test_run_render_all_formats(record_file, tmp_path):
    out = tmp_path / "out"
    outputs = run_render(str(record_file), output_dir=str(out), formats=["pdf", "png", "csv", "xlsx"], zoom=0.5)

    assert outputs["pdf_paths"] == [out / "INV2024001.pdf"]
    assert outputs["png_paths"] == [out / "INV2024001.png"]
    assert outputs["png_paths"][0].read_bytes().startswith(b"\x89PNG")
    assert outputs["csv_path"].exists()
    assert outputs["excel_path"].exists()
    assert outputs["records"][0].grand_total == 250.0


def test_run_render_applies_catalog_rates(record_file, rates_file, tmp_path):
    outputs = run_render(
        str(record_file),
        output_dir=str(tmp_path / "out"),
        formats=["csv"],
        rates_path=str(rates_file),
        invoice_number="INV-9",
    )
    (record,) = outputs["records"]

    assert record.grand_total == 1200.0
    assert record.currency == "QAR"
    assert record.metadata.invoice_number == "INV-9"
    assert outputs["pdf_paths"] == []


def test_main_render(record_file, tmp_path, capsys):
    code = main(["--input", str(record_file), "--output", str(tmp_path / "out"), "--words"])

    assert code == 0
    assert (tmp_path / "out" / "INV2024001.pdf").exists()
    assert "USD 250.00: US DOLLARS TWO HUNDRED FIFTY ONLY" in capsys.readouterr().out


def test_main_missing_input(tmp_path, capsys):
    assert main(["--input", str(tmp_path / "missing.json")]) == 1
    assert "Input file not found" in capsys.readouterr().err


def test_main_invalid_record(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("[1, 2]", encoding="utf-8")

    assert main(["--input", str(path)]) == 1
