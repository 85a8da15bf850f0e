import json
import logging

from dlt_tasks.core.errors import ErrorKind, classify_exception, classify_exit_code
from dlt_tasks.core.logger import CustomFormatter, JSONFormatter, LoggingContext, setup_logger


def test_exit_code_classification():
    info = classify_exit_code(127, "dlt_cli")

    assert info.kind is ErrorKind.EXIT_CODE
    assert info.to_dict() == {
        "kind": "exit_code",
        "retryable": False,
        "code": "EXIT_127",
        "message": "Command failed with exit code 127",
        "source": "dlt_cli",
        "exit_code": 127,
    }


def test_timeout_classification():
    info = classify_exit_code(-9, "dlt_run", timed_out=True)
    assert info.kind is ErrorKind.TIMEOUT
    assert info.retryable


def test_exception_classification():
    assert classify_exception(FileNotFoundError("docker"), "dlt_cli").kind is ErrorKind.RUNTIME
    unknown = classify_exception(RuntimeError("boom"), "dlt_cli")
    assert unknown.kind is ErrorKind.UNKNOWN
    assert unknown.to_dict()["exception_type"] == "RuntimeError"


def _record(msg, **extra):
    record = logging.LogRecord("dlt_tasks.test", logging.INFO, __file__, 10, msg, None, None, func="fn")
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_text_formatter_includes_extras_and_multiline_message():
    text = CustomFormatter().format(_record("first\nsecond", task_id="t-1"))

    assert "[INFO]" in text
    assert "Message: first" in text
    assert "             second" in text
    assert "task_id: t-1" in text


def test_json_formatter():
    payload = json.loads(JSONFormatter().format(_record("hello", task_kind="dlt_run")))

    assert payload["message"] == "hello"
    assert payload["level"] == "INFO"
    assert payload["task_kind"] == "dlt_run"


def test_logging_context_stamps_records():
    logger = setup_logger("dlt_tasks.test_context", use_json=True)
    seen = []

    class _Collect(logging.Handler):
        def emit(self, record):
            seen.append(getattr(record, "task_id", None))

    handler = _Collect()
    logger.addHandler(handler)
    try:
        with LoggingContext(logger, task_id="abc"):
            logger.info("inside")
        logger.info("outside")
    finally:
        logger.removeHandler(handler)

    assert seen == ["abc", None]


def test_success_level():
    logger = setup_logger("dlt_tasks.test_success", use_json=True)
    assert hasattr(logger, "success")
    assert logging.getLevelName(25) == "SUCCESS"


def test_logs_go_to_stderr(capsys):
    logger = setup_logger("dlt_tasks.test_stream", use_json=True)

    logger.info("captured process line")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert "captured process line" in captured.err
