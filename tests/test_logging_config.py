import json
import logging

from curriculum.exceptions import ChildProvisioningError
from curriculum.logging_config import (
    ColoredFormatter,
    JsonFormatter,
    LogContext,
    get_logger,
    log_exception,
    setup_logging,
)


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def test_get_logger_is_namespaced():
    assert get_logger('pipeline').name == 'curriculum.pipeline'


def test_setup_logging_writes_json_file(tmp_path):
    log_file = tmp_path / "logs" / "run.log"
    logger = setup_logging(level="DEBUG", log_file=str(log_file), json_format=True, console=False)
    try:
        get_logger('test').info("hello")
        for handler in logger.handlers:
            handler.flush()
        entry = json.loads(log_file.read_text().splitlines()[-1])
        assert entry['message'] == "hello"
        assert entry['logger'] == "curriculum.test"
        assert entry['level'] == "INFO"
    finally:
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()


def test_log_context_and_exception_details():
    logger = get_logger('context-test')
    handler = ListHandler()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        with LogContext(logger, unit_id="U1"):
            log_exception(logger, ChildProvisioningError(1, "M1", "upload"), "failed")
        logger.info("outside")
    finally:
        logger.removeHandler(handler)

    inside, outside = handler.records
    assert inside.unit_id == "U1"
    assert inside.details['step'] == "upload"
    assert not hasattr(outside, 'unit_id')

    data = json.loads(JsonFormatter().format(inside))
    assert data['unit_id'] == "U1"
    assert data['details']['child_index'] == 1


def test_material_fields_reach_both_formatters():
    logger = get_logger('fields-test')
    handler = ListHandler()
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        with LogContext(logger, unit_id="U1"):
            log_exception(logger, ChildProvisioningError(2, "M3", "register"), "failed")
    finally:
        logger.removeHandler(handler)

    record = handler.records[0]
    assert (record.child_index, record.identifier, record.step) == (2, "M3", "register")

    data = json.loads(JsonFormatter().format(record))
    assert data['child_index'] == 2
    assert data['identifier'] == "M3"
    assert data['step'] == "register"

    line = ColoredFormatter("%(levelname)s %(message)s", use_color=False).format(record)
    assert line.startswith("ERROR failed:")
    assert line.endswith("[unit_id=U1 child_index=2 identifier=M3 step=register]")
    assert record.levelname == "ERROR"
