from __future__ import annotations

import json
from pathlib import Path

import pytest

from settlement_enricher.logging.error_log import ErrorLogBuffer
from settlement_enricher.models.progress_event import ProgressEvent, RunStatus
from settlement_enricher.models.report_row import DataRow, OutcomeKind
from settlement_enricher.services.enrichment import (
    EnrichmentEngine,
    lookup_keys,
    resolve_home_transaction_id,
)
from tests.fakes import FakeStore, payload


def _rows(*transfer_ids: str) -> list[DataRow]:
    return [
        DataRow(row_number=i, values={"Sender": "a", "Transfer ID": tid})
        for i, tid in enumerate(transfer_ids, start=1)
    ]


def test_lookup_keys_order():
    assert lookup_keys("T1") == ("transferModel_in_T1", "transferModel_out_T1")
    assert lookup_keys("T1", "other") == ("other_in_T1", "other_out_T1")


class TestResolveHomeTransactionId:
    def test_found_under_in_key(self):
        store = FakeStore({"transferModel_in_T1": payload("H1")})
        outcome = resolve_home_transaction_id(store, "T1")

        assert outcome.kind is OutcomeKind.FOUND
        assert outcome.value == "H1"
        assert store.calls == ["transferModel_in_T1"]

    def test_falls_back_to_out_key(self):
        store = FakeStore({"transferModel_out_T1": payload("H-out")})
        outcome = resolve_home_transaction_id(store, "T1")

        assert outcome.value == "H-out"
        assert store.calls == ["transferModel_in_T1", "transferModel_out_T1"]

    def test_in_key_wins_over_out_key(self):
        store = FakeStore(
            {"transferModel_in_T1": payload("H-in"), "transferModel_out_T1": payload("H-out")}
        )
        assert resolve_home_transaction_id(store, "T1").value == "H-in"

    def test_empty_in_value_treated_as_absent(self):
        store = FakeStore({"transferModel_in_T1": "", "transferModel_out_T1": payload("H-out")})
        assert resolve_home_transaction_id(store, "T1").value == "H-out"

    def test_no_key_matches(self):
        store = FakeStore()
        outcome = resolve_home_transaction_id(store, "T1")

        assert outcome.kind is OutcomeKind.NOT_FOUND
        assert outcome.render() == "NOT_FOUND"

    @pytest.mark.parametrize("transfer_id", ["", "   ", None])
    def test_blank_transfer_id_skips_store(self, transfer_id):
        store = FakeStore()
        outcome = resolve_home_transaction_id(store, transfer_id)

        assert outcome.kind is OutcomeKind.NOT_FOUND
        assert store.calls == []

    @pytest.mark.parametrize(
        "raw",
        [
            json.dumps({"transferId": "T1"}),
            json.dumps({"homeTransactionId": ""}),
            json.dumps({"homeTransactionId": None}),
            json.dumps(["H1"]),
            json.dumps("H1"),
        ],
    )
    def test_payload_without_field_is_miss(self, raw):
        store = FakeStore({"transferModel_in_T1": raw})
        assert resolve_home_transaction_id(store, "T1").kind is OutcomeKind.NOT_FOUND

    def test_non_string_identifier_rendered_as_text(self):
        store = FakeStore({"transferModel_in_T1": json.dumps({"homeTransactionId": 12345})})
        assert resolve_home_transaction_id(store, "T1").value == "12345"

    @pytest.mark.parametrize(
        ("home_id", "rendered"),
        [(True, "true"), (123.0, "123"), (1.5, "1.5"), (["a", "b"], '["a", "b"]')],
    )
    def test_non_string_identifier_rendered_as_json(self, home_id, rendered):
        store = FakeStore({"transferModel_in_T1": json.dumps({"homeTransactionId": home_id})})
        assert resolve_home_transaction_id(store, "T1").value == rendered

    def test_invalid_json_is_error(self):
        store = FakeStore({"transferModel_in_T1": "{not json"})
        outcome = resolve_home_transaction_id(store, "T1")

        assert outcome.kind is OutcomeKind.ERROR
        assert outcome.error_type == "PAYLOAD_DECODE_ERROR"
        assert outcome.render() == "ERROR"

    def test_store_failure_is_error(self):
        store = FakeStore(fail_keys={"transferModel_in_T1"})
        outcome = resolve_home_transaction_id(store, "T1")

        assert outcome.kind is OutcomeKind.ERROR
        assert outcome.error_type == "STORE_LOOKUP_ERROR"
        assert "connection reset" in outcome.reason

    def test_store_failure_on_fallback_key_is_error(self):
        store = FakeStore(fail_keys={"transferModel_out_T1"})
        assert resolve_home_transaction_id(store, "T1").kind is OutcomeKind.ERROR

    def test_custom_key_prefix(self):
        store = FakeStore({"legacy_out_T1": payload("H1")})
        assert resolve_home_transaction_id(store, "T1", "legacy").value == "H1"


class TestEnrichmentEngine:
    def test_rows_annotated_and_counted(self):
        store = FakeStore(
            {
                "transferModel_in_T1": payload("H1"),
                "transferModel_out_T2": payload("H2"),
                "transferModel_in_T4": "{broken",
            }
        )
        rows = _rows("T1", "T2", "T3", "T4", "")

        stats = EnrichmentEngine(store).enrich(rows, section_headers=2)

        assert [r.outcome.render() for r in rows] == ["H1", "H2", "NOT_FOUND", "ERROR", "NOT_FOUND"]
        assert stats.total_rows == 5
        assert stats.processed == 5
        assert stats.found == 2
        assert stats.not_found == 2
        assert stats.errors == 1
        assert stats.section_headers == 2
        assert stats.processed == stats.found + stats.not_found + stats.errors

    def test_row_failure_does_not_abort_batch(self):
        store = FakeStore(
            {"transferModel_in_T3": payload("H3")},
            fail_keys={"transferModel_in_T1", "transferModel_in_T2"},
        )
        rows = _rows("T1", "T2", "T3")

        stats = EnrichmentEngine(store).enrich(rows)

        assert stats.errors == 2
        assert stats.found == 1
        assert rows[2].outcome.value == "H3"

    def test_errors_recorded_in_error_log(self, tmp_path: Path):
        store = FakeStore(fail_keys={"transferModel_in_T2"})
        error_log = ErrorLogBuffer(tmp_path / "logs")
        rows = _rows("T1", "T2")

        EnrichmentEngine(store, error_log=error_log, file_name="report.csv").enrich(rows)

        assert len(error_log) == 1
        path = error_log.flush()
        record = json.loads(path.read_text(encoding="utf-8").strip())
        assert record["file"] == "report.csv"
        assert record["row"] == 2
        assert record["transfer_id"] == "T2"
        assert record["error_type"] == "STORE_LOOKUP_ERROR"

    def test_progress_events_cadence(self):
        events: list[ProgressEvent] = []
        rows = _rows(*[f"T{i}" for i in range(25)])

        EnrichmentEngine(FakeStore(), progress_interval=10, reporter=events.append).enrich(rows)

        assert all(e.status is RunStatus.PROCESSING for e in events)
        assert [e.progress for e in events] == [4, 44, 84, 100]
        assert events[-1].message == "Processed 25/25 rows"

    def test_progress_monotonic_and_ends_at_100(self):
        events: list[ProgressEvent] = []
        rows = _rows(*[f"T{i}" for i in range(7)])

        EnrichmentEngine(FakeStore(), progress_interval=1, reporter=events.append).enrich(rows)

        percents = [e.progress for e in events]
        assert percents == sorted(percents)
        assert percents[-1] == 100
        assert len(events) == 7

    def test_single_row_reports_once(self):
        events: list[ProgressEvent] = []
        EnrichmentEngine(FakeStore(), reporter=events.append).enrich(_rows("T1"))
        assert [e.progress for e in events] == [100]

    def test_no_rows(self):
        events: list[ProgressEvent] = []
        stats = EnrichmentEngine(FakeStore(), reporter=events.append).enrich([])

        assert stats.processed == 0
        assert events == []

    def test_invalid_progress_interval(self):
        with pytest.raises(ValueError):
            EnrichmentEngine(FakeStore(), progress_interval=0)
