"""Tests for interceptca.cleanup.tempdir."""

from __future__ import annotations

import logging
from unittest.mock import patch

from interceptca.cleanup.tempdir import cleanup_temp_directory


class TestCleanupTempDirectory:
    def test_removes_tree(self, config, logger, tmp_dir):
        (tmp_dir / "nested").mkdir(parents=True)
        (tmp_dir / "nested" / "file.bin").write_bytes(b"x")
        (tmp_dir / "ca.crt").write_bytes(b"pem")

        cleanup_temp_directory(config, logger)

        assert not tmp_dir.exists()

    def test_leaves_other_versions_alone(self, config, logger, tmp_dir, cache_dir):
        tmp_dir.mkdir(parents=True)
        other = cache_dir / "0.0.1" / "tmp"
        other.mkdir(parents=True)

        cleanup_temp_directory(config, logger)

        assert not tmp_dir.exists()
        assert other.is_dir()

    def test_absent_directory_is_not_an_error(self, config, logger, tmp_dir, caplog):
        with caplog.at_level(logging.DEBUG, logger="interceptca"):
            cleanup_temp_directory(config, logger)
            cleanup_temp_directory(config, logger)

        assert not tmp_dir.exists()
        assert not [r for r in caplog.records if r.levelno >= logging.WARNING]

    def test_failure_is_logged_and_counted(self, config, logger, tmp_dir, metrics, caplog):
        tmp_dir.mkdir(parents=True)

        with (
            patch(
                "interceptca.cleanup.tempdir.shutil.rmtree",
                side_effect=PermissionError("in use"),
            ),
            caplog.at_level(logging.WARNING, logger="interceptca"),
        ):
            cleanup_temp_directory(config, logger, metrics=metrics)

        assert tmp_dir.exists()
        assert "Failed to delete temporary directory" in caplog.text
        assert caplog.records[-1].cleanup_target == "tempdir"
        assert metrics.get("cleanup_failures_total", {"target": "tempdir"}) == 1

    def test_failure_without_metrics(self, config, logger, tmp_dir):
        tmp_dir.mkdir(parents=True)
        with patch(
            "interceptca.cleanup.tempdir.shutil.rmtree",
            side_effect=OSError("busy"),
        ):
            cleanup_temp_directory(config, logger)

    def test_concurrently_removed_directory(self, config, logger, tmp_dir):
        tmp_dir.mkdir(parents=True)
        with patch(
            "interceptca.cleanup.tempdir.shutil.rmtree",
            side_effect=FileNotFoundError("gone"),
        ):
            cleanup_temp_directory(config, logger)
