"""Tests for manifmt.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from manifmt.formatter import ManifestFormatter
from manifmt.logging import configure_logging, get_logger, package_logger


def test_get_logger_is_namespaced() -> None:
    assert get_logger().name == "manifmt"
    assert get_logger("render").name == "manifmt.render"


def test_configure_logging_replaces_handlers(tmp_path: Path) -> None:
    log_file = tmp_path / "manifmt.log"
    configure_logging(verbose=True, log_file=log_file)
    logger = configure_logging(verbose=False)

    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert logger.propagate is False


def test_configure_logging_writes_file(tmp_path: Path) -> None:
    log_file = tmp_path / "manifmt.log"
    configure_logging(verbose=True, log_file=log_file)

    get_logger("formatter").debug("formatted %s", "Cargo.toml")
    for handler in logging.getLogger("manifmt").handlers:
        handler.flush()

    assert "formatted Cargo.toml" in log_file.read_text(encoding="utf-8")
    configure_logging(verbose=False)


class _Collect(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.records: list[logging.LogRecord] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(record)


def test_package_logger_tags_records() -> None:
    configure_logging(verbose=True)
    collector = _Collect()
    logging.getLogger("manifmt").addHandler(collector)
    try:
        package_logger(get_logger("formatter"), "widget").info("formatted %s", "Cargo.toml")
    finally:
        logging.getLogger("manifmt").removeHandler(collector)
        configure_logging(verbose=False)

    (record,) = collector.records
    assert record.getMessage() == "[widget] formatted Cargo.toml"
    assert record.package == "widget"


def test_formatter_logs_under_package_name(tmp_path: Path) -> None:
    log_file = tmp_path / "manifmt.log"
    package = tmp_path / "widget"
    package.mkdir()
    (package / "Cargo.toml").write_text('[package]\nversion = "0.1.0"\nname = "widget"\n', encoding="utf-8")
    configure_logging(verbose=True, log_file=log_file)
    try:
        ManifestFormatter().format_package(package / "Cargo.toml")
    finally:
        for handler in logging.getLogger("manifmt").handlers:
            handler.flush()
        configure_logging(verbose=False)

    assert "[widget] Formatted" in log_file.read_text(encoding="utf-8")
