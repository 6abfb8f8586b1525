import io
import json
import logging

import pytest

from modules.utils import get_logger, log_error, log_request, set_request_context, get_request_context


def _close(logger):
    for h in list(logger.handlers):
        h.close()
        logger.removeHandler(h)


@pytest.mark.unit
def test_json_format(monkeypatch):
    monkeypatch.setenv('LOG_FORMAT', 'json')
    monkeypatch.setenv('LOG_LEVEL', 'INFO')
    logger = get_logger('cards_json_format_test')
    try:
        stream = io.StringIO()
        logger.handlers[0].setStream(stream)
        set_request_context('req-json')
        logger.info('segment_complete', extra={'unit_count': 3})
        payload = json.loads(stream.getvalue().strip().splitlines()[-1])
        assert payload['message'] == 'segment_complete'
        assert payload['unit_count'] == 3
        assert payload['request_id'] == 'req-json'
        assert payload['levelname'] == 'INFO'
    finally:
        _close(logger)


@pytest.mark.unit
def test_file_handlers(monkeypatch, tmp_path):
    log_dir = tmp_path / 'logs'
    monkeypatch.setenv('LOG_FILE_PATH', str(log_dir))
    logger = get_logger('cards_file_test')
    try:
        logger.info('just info')
        logger.error('something broke')
        for h in logger.handlers:
            h.flush()
        combined = (log_dir / 'combined.log').read_text()
        errors = (log_dir / 'error.log').read_text()
        assert 'just info' in combined and 'something broke' in combined
        assert 'something broke' in errors
        assert 'just info' not in errors
    finally:
        _close(logger)


@pytest.mark.unit
def test_handlers_are_not_duplicated():
    a = get_logger('cards_dup_test')
    b = get_logger('cards_dup_test')
    try:
        assert a is b
        assert len(a.handlers) == 1
    finally:
        _close(a)


@pytest.mark.unit
def test_request_context_is_injected(caplog):
    set_request_context('req-ctx', user_id='u1')
    assert get_request_context() == {'request_id': 'req-ctx', 'user_id': 'u1'}
    with caplog.at_level(logging.INFO, logger='cards_service'):
        log_request('req-explicit', 'POST', '/flashcards/parse', 200, 1.5)
        get_logger().info('ambient')
    by_msg = {r.getMessage(): r for r in caplog.records}
    assert by_msg['http_request'].request_id == 'req-explicit'
    assert by_msg['http_request'].status_code == 200
    assert by_msg['ambient'].request_id == 'req-ctx'
    assert by_msg['ambient'].user_id == 'u1'


@pytest.mark.unit
def test_log_error_records_exception(caplog):
    with caplog.at_level(logging.ERROR, logger='cards_service'):
        log_error(ValueError('bad pattern'), {'request_id': 'req-err'})
    record = [r for r in caplog.records if r.getMessage() == 'error'][0]
    assert record.exc_info[0] is ValueError
    assert record.request_id == 'req-err'
