from __future__ import annotations

import json

from kta_importer.models.error_record import ErrorRecord


def test_create_stamps_utc_timestamp():
    rec = ErrorRecord.create("members.csv", 12, "KTA-1", "ROW_INSERT_FAILED", "boom")
    assert rec.timestamp.endswith("Z")
    assert "+00:00" not in rec.timestamp


def test_json_line_keeps_non_ascii():
    rec = ErrorRecord.create("anggota.csv", 3, "KTA-é", "ROW_INSERT_FAILED", "nilai terlalu panjang untuk kolom «rt_ktp»")
    line = rec.to_json_line()
    assert "«rt_ktp»" in line
    assert "\n" not in line
    assert json.loads(line)["db_message"].endswith("«rt_ktp»")


def test_unknown_row_is_minus_one():
    rec = ErrorRecord.create("members.csv", -1, None, "ROW_INSERT_FAILED", "x")
    assert json.loads(rec.to_json_line())["row"] == -1
