# tests/test_lead_log.py
"""Tests for the append-only CSV lead log."""

import csv
import json
from datetime import datetime, timezone

from app.infrastructure.leads.lead_log import LEAD_COLUMNS, CsvLeadLog, LeadRecord


def _rows(path):
    with path.open(newline="", encoding="utf-8") as fh:
        return list(csv.reader(fh))


def test_header_written_once(tmp_path):
    log = CsvLeadLog(tmp_path / "leads.csv")
    log.append(LeadRecord(chat_id="a", name="Ana", flow="CANADA_PR"))
    log.append(LeadRecord(chat_id="b", name="Bo", flow="HANDOFF"))

    rows = _rows(log.path)
    assert rows[0] == LEAD_COLUMNS
    assert [r[1] for r in rows[1:]] == ["a", "b"]


def test_existing_file_is_appended_not_rewritten(tmp_path):
    path = tmp_path / "leads.csv"
    CsvLeadLog(path).append(LeadRecord(chat_id="a", name="Ana", flow="CANADA_PR"))
    CsvLeadLog(path).append(LeadRecord(chat_id="b", name="Bo", flow="WORK_PERMIT"))

    rows = _rows(path)
    assert len(rows) == 3
    assert rows.count(LEAD_COLUMNS) == 1


def test_row_serialises_payload_and_quotes(tmp_path):
    log = CsvLeadLog(tmp_path / "leads.csv")
    ts = datetime(2025, 1, 15, 10, 30, tzinfo=timezone.utc)
    log.append(LeadRecord(
        chat_id="919999999999",
        name='Ana "AJ" Jones',
        flow="ELIGIBILITY",
        data={"eligibility": {"result": "Possible", "score": 5}},
        timestamp=ts,
    ))

    row = _rows(log.path)[1]
    assert row[0] == ts.isoformat()
    assert row[2] == 'Ana "AJ" Jones'
    assert json.loads(row[4]) == {"eligibility": {"result": "Possible", "score": 5}}
    assert '"Ana ""AJ"" Jones"' in log.path.read_text(encoding="utf-8")
