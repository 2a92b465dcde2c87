import logging

from nrtgraphics.utils.logging import PACKAGE_LOGGER, configure_logging, resolve_level


def test_resolve_level_accepts_names_and_numbers() -> None:
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(" WARNING ") == logging.WARNING
    assert resolve_level(logging.ERROR) == logging.ERROR
    assert resolve_level("chatty") == logging.INFO


def test_configure_logging_sets_package_level() -> None:
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    previous = package_logger.level
    try:
        configure_logging("debug")
        assert package_logger.level == logging.DEBUG
        configure_logging("error")
        assert package_logger.level == logging.ERROR
    finally:
        package_logger.setLevel(previous)
