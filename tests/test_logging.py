"""
日志上下文测试
"""

import logging

from sgad_docstore.core.correlation import ID_SIZE, correlator, generate_run_id, get_run_id
from sgad_docstore.core.logging import ContextFormatter, LogContext, LogLevel


def format_record(message: str = "hello") -> str:
    formatter = ContextFormatter("%(ctx)s %(message)s")
    record = logging.LogRecord("test", logging.INFO, __file__, 1, message, None, None)
    return formatter.format(record)


def test_generate_run_id():
    run_id = generate_run_id()
    assert len(run_id) == ID_SIZE
    assert run_id.isalnum()
    assert run_id != generate_run_id()


def test_correlator_scope_nesting():
    assert get_run_id() == "-"
    with correlator.scope("R1"):
        with correlator.scope("certificates") as full:
            assert full == "R1::certificates"
        assert correlator.run_id == "R1"
    assert correlator.run_id == "-"


def test_formatter_without_context():
    assert format_record() == "[*] hello"


def test_formatter_with_db_and_scope():
    """输出 [run_id] [db:scope]"""
    with correlator.scope("R1"), LogContext(db_name="certificados_db"):
        assert format_record() == "[R1] [certificados_db] hello"
        with LogContext.scope("certificates"):
            assert format_record() == "[R1] [certificados_db:certificates] hello"
        assert LogContext.get("db_name") == "certificados_db"
    assert LogContext.get("db_name") is None


def test_operation_reraises(caplog):
    with caplog.at_level(logging.DEBUG):
        try:
            with LogContext.operation("ensure_indexes"):
                raise ValueError("boom")
        except ValueError:
            pass
    assert any("ensure_indexes failed" in r.getMessage() for r in caplog.records)


def test_nested_step_path():
    """嵌套 scope 组成步骤路径"""
    with LogContext(db_name="sgad_nosql"), LogContext.scope("system_configuration"):
        with LogContext.scope("seeds"):
            assert LogContext.step() == "system_configuration/seeds"
            assert format_record() == "[*] [sgad_nosql:system_configuration/seeds] hello"
        assert LogContext.step() == "system_configuration"
    assert LogContext.step() is None


def test_log_level_parse():
    assert LogLevel.parse("debug") is LogLevel.DEBUG
    assert LogLevel.parse("verbose") is LogLevel.INFO
    assert LogLevel.parse(None, default=LogLevel.WARNING) is LogLevel.WARNING
    assert LogLevel.ERROR.to_logging_level() == logging.ERROR


def test_timestamp_is_utc_milliseconds():
    formatter = ContextFormatter("%(asctime)s")
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "x", None, None)
    record.created = 1_700_000_000.1234
    assert formatter.formatTime(record) == "2023-11-14T22:13:20.123Z"
