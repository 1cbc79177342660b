import logging

import pytest

from genshin_dictionary.utils.logging import StripAnsiFilter, configure_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)


def test_log_file_setting_is_used(tmp_path, restore_root_logger):
    log_path = tmp_path / "refresh 100%.log"

    configure_logging(level="debug", log_file=log_path)
    logging.getLogger("genshin_dictionary.tests").info("\x1b[1mRefresh finished\x1b[0m")

    file_handlers = [h for h in restore_root_logger.handlers if isinstance(h, logging.FileHandler)]
    assert [h.baseFilename for h in file_handlers] == [str(log_path)]
    assert any(isinstance(f, StripAnsiFilter) for f in file_handlers[0].filters)
    assert restore_root_logger.level == logging.DEBUG
    file_handlers[0].flush()
    content = log_path.read_text(encoding="utf-8")
    assert "Refresh finished" in content
    assert "\x1b[" not in content


def test_missing_config_falls_back_to_basic_config(tmp_path, restore_root_logger):
    configure_logging(config_path=tmp_path / "missing.ini", log_file=tmp_path / "unused.log")

    assert not (tmp_path / "unused.log").exists()
