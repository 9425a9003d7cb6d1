try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from vault_sdk.services.audit_log import AuditEntry, AuditLogger


def _entry(status: int = 200, timestamp: str = "2024-01-01T00:00:00.000Z", path: str = "/api/v1/vaults") -> AuditEntry:
    return AuditEntry(timestamp=timestamp, method="GET", path=path, status=status, duration_ms=12)


def test_log_creates_directory_and_appends_json_lines(tmp_path) -> None:
    log_path = tmp_path / "nested" / "audit.log"
    logger = AuditLogger(log_path)

    logger.log(_entry())
    logger.log(_entry(status=404))

    lines = log_path.read_text().splitlines()
    assert len(lines) == 2
    assert '"durationMs":12' in lines[0]
    assert [entry.status for entry in logger.read_entries()] == [200, 404]


def test_entries_accept_wire_field_names() -> None:
    entry = AuditEntry.model_validate(
        {"timestamp": "t", "method": "GET", "path": "/", "status": 200, "durationMs": 7}
    )

    assert entry.duration_ms == 7
    assert '"durationMs":7' in entry.model_dump_json(by_alias=True)


def test_read_entries_missing_file(tmp_path) -> None:
    assert AuditLogger(tmp_path / "absent.log").read_entries() == []


def test_read_entries_skips_malformed_lines(tmp_path) -> None:
    log_path = tmp_path / "audit.log"
    log_path.write_text(
        _entry().model_dump_json(by_alias=True) + "\nnot json\n{\"partial\": true}\n\n" + _entry(201).model_dump_json(by_alias=True) + "\n"
    )

    assert [entry.status for entry in AuditLogger(log_path).read_entries()] == [200, 201]


def test_read_entries_filters(tmp_path) -> None:
    logger = AuditLogger(tmp_path / "audit.log")
    logger.log(_entry(200, "2024-01-01T00:00:00.000Z"))
    logger.log(_entry(500, "2024-01-02T00:00:00.000Z"))
    logger.log(_entry(200, "2024-01-03T00:00:00.000Z"))
    logger.log(_entry(200, "2024-01-04T00:00:00.000Z"))

    assert len(logger.read_entries(status=200)) == 3
    assert [e.status for e in logger.read_entries(status=500)] == [500]

    window = logger.read_entries(since="2024-01-02T00:00:00Z", until="2024-01-03")
    assert [e.timestamp[:10] for e in window] == ["2024-01-02", "2024-01-03"]

    tail = logger.read_entries(tail=2)
    assert [e.timestamp[:10] for e in tail] == ["2024-01-03", "2024-01-04"]
    assert logger.read_entries(tail=0) == []


def test_time_window_skips_unreadable_timestamps(tmp_path) -> None:
    logger = AuditLogger(tmp_path / "audit.log")
    logger.log(_entry(500, "garbage"))
    logger.log(_entry(200, "2024-01-02T00:00:00.000Z"))

    assert [e.status for e in logger.read_entries(since="2024-01-01T00:00:00.000Z")] == [200]
    assert [e.status for e in logger.read_entries(until="2024-01-03T00:00:00.000Z")] == [200]
    assert [e.status for e in logger.read_entries()] == [500, 200]


def test_rotation_keeps_bounded_history(tmp_path) -> None:
    log_path = tmp_path / "audit.log"
    logger = AuditLogger(log_path, max_size=1, max_files=2)

    for status in (200, 201, 202, 203):
        logger.log(_entry(status))

    assert [e.status for e in logger.read_entries()] == [203]
    assert AuditLogger(tmp_path / "audit.log.1").read_entries()[0].status == 202
    assert AuditLogger(tmp_path / "audit.log.2").read_entries()[0].status == 201
    assert not (tmp_path / "audit.log.3").exists()


def test_export_csv_escapes_values() -> None:
    entries = [
        _entry(),
        AuditEntry(timestamp="t", method="POST", path='/a,"b"', status=201, duration_ms=5),
    ]

    csv_text = AuditLogger.export_csv(entries)

    assert csv_text.splitlines() == [
        "timestamp,method,path,status,durationMs",
        "2024-01-01T00:00:00.000Z,GET,/api/v1/vaults,200,12",
        't,POST,"/a,""b""",201,5',
    ]
