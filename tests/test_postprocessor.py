"""Tests for extraction post-processing and value normalizers."""

import pytest

from template_studio.postprocessor.normalizers import AmountNormalizer, DateNormalizer, clean_text
from template_studio.postprocessor.processor import RecordPostProcessor
from template_studio.queue.extraction import ExtractionResult


@pytest.fixture
def processor():
    return RecordPostProcessor()


# =============================================================================
# Normalizers
# =============================================================================

@pytest.mark.parametrize("raw, expected", [
    ("2026-01-15", "15/01/2026"),
    ("15/01/2026", "15/01/2026"),
    ("15.01.2026", "15/01/2026"),
    ("January 15th, 2026", "15/01/2026"),
    ("Invoice Date: 3rd March 2026", "03/03/2026"),
    ("05/04/2026", "05/04/2026"),
])
def test_date_normalizer(raw, expected):
    assert DateNormalizer().normalize(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "   ", "no date here"])
def test_date_normalizer_rejects(raw):
    assert DateNormalizer().normalize(raw) is None


@pytest.mark.parametrize("raw, expected", [
    ("QAR 1,234.50", 1234.5),
    ("€ 1.234,56", 1234.56),
    ("$99", 99.0),
    ("12,5", 12.5),
    (" 3 ", 3.0),
    (7, 7.0),
    ("-40.00", -40.0),
])
def test_amount_normalizer(raw, expected):
    assert AmountNormalizer().to_float(raw) == expected


@pytest.mark.parametrize("raw", [None, True, "abc", "", "1.2.3"])
def test_amount_normalizer_rejects(raw):
    assert AmountNormalizer().to_float(raw) is None


def test_clean_text_keeps_line_breaks():
    assert clean_text("  Acme   Corp \n\t Doha  Qatar ") == "Acme Corp\nDoha Qatar"
    assert clean_text(None) is None


# =============================================================================
# Processor
# =============================================================================

def _result(data, scores=None):
    return ExtractionResult(data=data, confidence_scores=scores or {}, source_file="scan.pdf")


def test_metadata_and_bank_text_are_cleaned(processor):
    result = _result({
        "metadata": {"clientName": "  Acme   Corp ", "date": "2026-01-15"},
        "bankDetails": {"bankName": "Doha\t Bank"},
        "currency": " qar ",
    })
    cleaned = processor.process(result)

    assert cleaned.data["metadata"] == {"clientName": "Acme Corp", "date": "15/01/2026"}
    assert cleaned.data["bankDetails"] == {"bankName": "Doha Bank"}
    assert cleaned.data["currency"] == "QAR"
    assert cleaned.warnings == []


def test_line_numbers_are_coerced(processor):
    cleaned = processor.process(_result({"summary": [
        {"description": " Senior  Inspector ", "quantity": "2", "rate": "QAR 1,200.00"},
        {"description": "Overtime", "quantity": "n/a", "rate": None},
        "not a line",
    ]}))

    first, second = cleaned.data["summary"]
    assert first == {"description": "Senior Inspector", "quantity": 2.0, "rate": 1200.0}
    assert (second["quantity"], second["rate"]) == (0.0, 0.0)


def test_unparsable_date_is_kept_with_warning(processor):
    cleaned = processor.process(_result({"metadata": {"date": "sometime soon"}}))

    assert cleaned.data["metadata"]["date"] == "sometime soon"
    assert cleaned.warnings == ["Could not normalize date: 'sometime soon'"]


def test_low_confidence_fields_are_flagged(processor):
    cleaned = processor.process(_result({}, {"metadata.invoiceNumber": 0.95, "currency": 0.42}))
    assert cleaned.warnings == ["Low confidence: currency (0.42)"]


def test_threshold_comes_from_config():
    assert RecordPostProcessor().confidence_threshold == 0.6


def test_input_is_not_modified(processor):
    data = {"metadata": {"clientName": "  Acme  "}, "summary": [{"quantity": "2"}]}
    result = _result(data, {"currency": 0.1})

    processor.process(result)

    assert data == {"metadata": {"clientName": "  Acme  "}, "summary": [{"quantity": "2"}]}
    assert result.warnings == []


def test_non_mapping_data_becomes_empty(processor):
    cleaned = processor.process(_result(["unexpected"]))
    assert cleaned.data == {}
