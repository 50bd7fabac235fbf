"""
Integration tests for the CLI commands.
"""

import json
import logging

import pytest
from typer.testing import CliRunner


@pytest.fixture
def runner():
    """Create a CLI runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    """Run every command in an empty directory and restore logging afterwards."""
    monkeypatch.chdir(tmp_path)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def data_dir(tmp_path, build):
    """A bug_reports.json with one replayable and one keypress-only report."""
    directory = tmp_path / "pointa"
    directory.mkdir()
    reports = [
        build.report([
            build.click(100, id="cart", tagName="button", textContent="Add to cart"),
            build.type_in(200, "2", id="qty", tagName="input"),
        ], report_id="BUG-1"),
        build.report([build.keypress(50, "Escape")], report_id="BUG-2", status="resolved"),
    ]
    (directory / "bug_reports.json").write_text(json.dumps([r.to_dict() for r in reports]))
    return directory


class TestCLIReplay:
    """Test the 'replay' CLI command."""
    
    def test_replay_help(self, runner):
        """Test help for replay command."""
        from bug_replay.main import app
        result = runner.invoke(app, ["replay", "--help"])
        assert result.exit_code == 0
        assert "--visible" in result.stdout
        assert "--pacing" in result.stdout
    
    def test_unknown_pacing(self, runner):
        """Test an invalid pacing is rejected before anything runs."""
        from bug_replay.main import app
        result = runner.invoke(app, ["replay", "BUG-1", "--pacing", "warp"])
        assert result.exit_code == 2
        assert "Unknown pacing" in result.stdout
    
    def test_missing_report(self, runner, data_dir):
        """Test a report that does not exist."""
        from bug_replay.main import app
        result = runner.invoke(app, ["replay", "BUG-404", "--store", "file", "--data-dir", str(data_dir)])
        assert result.exit_code == 1
        assert "Bug report BUG-404 not found" in result.stdout
    
    def test_nothing_to_replay(self, runner, data_dir):
        """Test a keypress-only report exits without launching a browser."""
        from bug_replay.main import app
        result = runner.invoke(app, ["replay", "BUG-2", "--store", "file", "--data-dir", str(data_dir)])
        assert result.exit_code == 1
        assert "Nothing to replay" in result.stdout


class TestCLISteps:
    """Test the 'steps' CLI command."""
    
    def test_steps(self, runner, data_dir):
        """Test the original steps are listed."""
        from bug_replay.main import app
        result = runner.invoke(app, ["steps", "BUG-1", "--store", "file", "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        assert '1. Click "Add to cart"' in result.stdout
        assert '2. Type in "qty"' in result.stdout
    
    def test_steps_without_interactions(self, runner, tmp_path, build):
        """Test a report without recorded interactions."""
        from bug_replay.main import app
        (tmp_path / "bug_reports.json").write_text(json.dumps([build.report([], report_id="BUG-3").to_dict()]))
        result = runner.invoke(app, ["steps", "BUG-3", "--store", "file", "--data-dir", str(tmp_path)])
        assert result.exit_code == 0
        assert "no recorded interactions" in result.stdout


class TestCLIList:
    """Test the 'list' CLI command."""
    
    def test_list(self, runner, data_dir):
        """Test reports are listed."""
        from bug_replay.main import app
        result = runner.invoke(app, ["list", "--store", "file", "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        assert "BUG-1" in result.stdout
        assert "BUG-2" in result.stdout
    
    def test_list_by_status(self, runner, data_dir):
        """Test the status filter."""
        from bug_replay.main import app
        result = runner.invoke(app, ["list", "--status", "resolved", "--store", "file", "--data-dir", str(data_dir)])
        assert result.exit_code == 0
        assert "BUG-2" in result.stdout
        assert "BUG-1" not in result.stdout
    
    def test_list_empty(self, runner, tmp_path):
        """Test an empty store."""
        from bug_replay.main import app
        result = runner.invoke(app, ["list", "--store", "file", "--data-dir", str(tmp_path / "empty")])
        assert result.exit_code == 0
        assert "No bug reports found" in result.stdout
    
    def test_unreachable_service(self, runner):
        """Test the HTTP store reports a connection error."""
        from bug_replay.main import app
        result = runner.invoke(app, ["list", "--api-url", "http://127.0.0.1:9"])
        assert result.exit_code == 1
        assert "Error" in result.stdout


class TestCLIVersion:
    """Test the 'version' CLI command."""
    
    def test_version(self, runner):
        """Test version output."""
        from bug_replay.main import app
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "bug-replay v0.1.0" in result.stdout
