"""Tests for the pipeline coordinator."""

import dataclasses
import os
from datetime import date, datetime, timezone

import pytest

from aptsync.common.errors import ConfigError, PreconditionError, PushError, ToolError
from aptsync.repos.base import ChangeEvent, EventKind, SyncStatus
from aptsync.repos.pipeline import SyncPipeline, working_directory
from aptsync.repos.upgrade import UpgradeCheck

FIXED_TIME = datetime(2026, 10, 19, 8, 30, 0, tzinfo=timezone.utc)


def make_pipeline(config, tools, upgrade_check=None):
    return SyncPipeline(config, tools, upgrade_check=upgrade_check, clock=lambda: FIXED_TIME)


class TestWorkingDirectory:
    """Tests for the working-directory guard."""

    def test_restores_on_success(self, tmp_path):
        """Test cwd restored after the block."""
        before = os.getcwd()

        with working_directory(tmp_path):
            assert os.path.samefile(os.getcwd(), tmp_path)

        assert os.getcwd() == before

    def test_restores_on_error(self, tmp_path):
        """Test cwd restored when the block raises."""
        before = os.getcwd()

        with pytest.raises(RuntimeError):
            with working_directory(tmp_path):
                raise RuntimeError("boom")

        assert os.getcwd() == before


class TestSyncPipeline:
    """Tests for SyncPipeline."""

    def test_run_success(self, sync_config, tools):
        """Test full run: index, sign, commit, push."""
        result = make_pipeline(sync_config, tools).run()

        assert result.status == SyncStatus.SUCCESS
        assert result.published
        assert result.commit_message == "Added dists/stable/Release."
        assert "dists/stable/main/binary-amd64/Packages" in result.index_files
        assert result.release_file == "dists/stable/Release"
        assert tools.vcs.operations() == ["add", "status", "commit", "push"]
        assert result.restart_requested is False

    def test_steps_run_in_order(self, sync_config, tools):
        """Test the signer sees the Release built from the new index."""
        make_pipeline(sync_config, tools).run()

        signed = tools.signer.signed[0]
        assert " main/binary-amd64/Packages" in signed

    def test_nothing_to_commit_is_not_fatal(self, sync_config, tools):
        """Test no-op publication ends the run cleanly."""
        tools.vcs.status = []

        result = make_pipeline(sync_config, tools).run()

        assert result.status == SyncStatus.NO_CHANGES
        assert not result.published
        assert "commit" not in tools.vcs.operations()

    def test_indexer_failure_stops_before_signing(self, sync_config, tools):
        """Test indexing failure aborts the run."""
        tools.indexer.fail = True

        with pytest.raises(ToolError):
            make_pipeline(sync_config, tools).run()

        assert tools.signer.signed == []
        assert tools.vcs.calls == []

    def test_signing_failure_stops_before_publication(self, sync_config, tools):
        """Test signing failure aborts before commit and push."""
        tools.signer.fail = True

        with pytest.raises(ToolError):
            make_pipeline(sync_config, tools).run()

        assert tools.vcs.calls == []

    def test_push_failure_is_fatal(self, sync_config, tools):
        """Test push failure surfaces as PushError."""
        tools.vcs.push_fails = True

        with pytest.raises(PushError):
            make_pipeline(sync_config, tools).run()

        assert "commit" in tools.vcs.operations()

    def test_cwd_restored_after_failure(self, sync_config, tools):
        """Test working directory restored on failure."""
        before = os.getcwd()
        tools.signer.fail = True

        with pytest.raises(ToolError):
            make_pipeline(sync_config, tools).run()

        assert os.getcwd() == before

    def test_cwd_restored_after_success(self, sync_config, tools):
        """Test working directory restored on success."""
        before = os.getcwd()

        make_pipeline(sync_config, tools).run()

        assert os.getcwd() == before

    def test_missing_layout_fails_before_mutation(self, sync_config, tools, repo_root):
        """Test precondition failure touches nothing."""
        (repo_root / "dists" / "stable" / "main" / "binary-amd64").rmdir()

        with pytest.raises(PreconditionError):
            make_pipeline(sync_config, tools).run()

        assert tools.indexer.calls == []

    def test_missing_maintainer(self, sync_config, tools):
        """Test unresolved maintainer is a configuration error."""
        repo = dataclasses.replace(sync_config.repository, maintainer=None)
        config = dataclasses.replace(sync_config, repository=repo)

        with pytest.raises(ConfigError, match="maintainer"):
            make_pipeline(config, tools).run()

    def test_restart_after_self_upgrade(self, sync_config, tools, tmp_path):
        """Test service restarted when the tool was upgraded today."""
        log = tmp_path / "dpkg.log"
        log.write_text("2026-10-19 07:00:00 upgrade aptsync:all 1.0 1.1\n")
        check = UpgradeCheck("aptsync", [str(log)], today=lambda: date(2026, 10, 19))

        result = make_pipeline(sync_config, tools, upgrade_check=check).run()

        assert result.restart_requested
        assert tools.services.restarted == ["aptsync"]

    def test_no_restart_after_failed_run(self, sync_config, tools, tmp_path):
        """Test the upgrade check only runs after success."""
        log = tmp_path / "dpkg.log"
        log.write_text("2026-10-19 07:00:00 upgrade aptsync:all 1.0 1.1\n")
        check = UpgradeCheck("aptsync", [str(log)], today=lambda: date(2026, 10, 19))
        tools.signer.fail = True

        with pytest.raises(ToolError):
            make_pipeline(sync_config, tools, upgrade_check=check).run()

        assert tools.services.restarted == []

    def test_on_change_runs_once(self, sync_config, tools):
        """Test monitor callback performs one run per burst."""
        burst = [
            ChangeEvent("/srv/repo/pool", EventKind.CREATED, f"p{i}.deb") for i in range(5)
        ]

        result = make_pipeline(sync_config, tools).on_change(burst)

        assert result.status == SyncStatus.SUCCESS
        assert len(tools.signer.signed) == 1
