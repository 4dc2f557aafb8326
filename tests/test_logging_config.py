import io
import logging

import pytest

from readout_geometry.logging_config import PACKAGE, setup_logging


@pytest.fixture
def package_logger():
    logger = logging.getLogger(PACKAGE)
    yield logger
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


def test_module_loggers_reach_package_handlers(package_logger, tmp_path):
    console = io.StringIO()
    log_file = tmp_path / "readout.log"
    logger = setup_logging("debug", log_file=str(log_file), stream=console)
    assert logger is package_logger
    assert logger.level == logging.DEBUG

    logging.getLogger(f"{PACKAGE}.segmentation.mapping").debug("grid built")
    assert "DEBUG   readout_geometry.segmentation.mapping: grid built" in console.getvalue()
    assert "grid built" in log_file.read_text()


def test_repeated_setup_replaces_only_its_handlers(package_logger):
    foreign = logging.NullHandler()
    package_logger.addHandler(foreign)

    setup_logging(logging.INFO, stream=io.StringIO())
    console = io.StringIO()
    setup_logging(logging.WARNING, stream=console)
    assert len(package_logger.handlers) == 2
    assert foreign in package_logger.handlers

    logging.getLogger(f"{PACKAGE}.geometry.module").info("hidden")
    logging.getLogger(f"{PACKAGE}.geometry.module").warning("pixel outside")
    assert console.getvalue() == "WARNING readout_geometry.geometry.module: pixel outside\n"


def test_unknown_level():
    with pytest.raises(ValueError):
        setup_logging("chatty")
