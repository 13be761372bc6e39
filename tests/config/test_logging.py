"""Tests for structlog configuration."""

from __future__ import annotations

import json
import logging

import pytest
import structlog

from sitectl.config.logging import configure_logging


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(verbose=True, log_json=False)
        assert logging.getLogger("sitectl").level == logging.DEBUG
        assert logging.getLogger().level == logging.WARNING

    def test_default_level_shows_phase_timings(self) -> None:
        configure_logging(verbose=False, log_json=False)
        assert logging.getLogger("sitectl").level == logging.INFO

    def test_human_mode_output(self) -> None:
        configure_logging(verbose=True, log_json=False)
        log = structlog.get_logger("sitectl.test")
        log.warning("hello world", key="val")
        # Smoke test; format depends on terminal

    def test_json_mode_output(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)
        log = structlog.get_logger("sitectl.test")
        log.info("phase.complete", phase="Initialize", elapsed=0.002)
        captured = capfd.readouterr()
        parsed = json.loads(captured.err.strip())
        assert parsed["event"] == "phase.complete"
        assert parsed["phase"] == "Initialize"
        assert parsed["level"] == "info"
        assert parsed["logger"] == "sitectl.test"
        assert "timestamp" in parsed

    def test_stdlib_site_logger_gets_structured_fields(
        self, capfd: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(verbose=True, log_json=True)

        logging.getLogger("sitectl.plugins.runner").debug("Loaded plugin: probe")

        captured = capfd.readouterr()
        parsed = json.loads(captured.err.strip())
        assert parsed["event"] == "Loaded plugin: probe"
        assert parsed["level"] == "debug"
        assert parsed["logger"] == "sitectl.plugins.runner"

    def test_third_party_noise_is_suppressed(self, capfd: pytest.CaptureFixture[str]) -> None:
        configure_logging(verbose=True, log_json=True)

        logging.getLogger("uvicorn.access").info("GET /___clients 200")
        logging.getLogger("asyncio").debug("loop noise")

        captured = capfd.readouterr()
        assert captured.err == ""

    def test_idempotent_calls(self) -> None:
        """Multiple configure_logging calls don't stack handlers."""
        configure_logging(verbose=True, log_json=False)
        configure_logging(verbose=True, log_json=True)
        root = logging.getLogger()
        assert len(root.handlers) == 1
