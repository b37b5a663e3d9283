"""Tests for InstallationVerifier."""

import sys

import pytest

from installcheck import (
    ExecutableNotFound,
    ExecutableNotRunnable,
    InstallationVerifier,
    InvocationTimeout,
    MarkerNotPresent,
    Outcome,
    resolve_executable,
)

MARKER = "Shorebird Engine • revision"

posix_only = pytest.mark.skipif(
    sys.platform == "win32", reason="uses POSIX shell scripts"
)


@posix_only
def test_marker_present_is_verified(make_tool):
    """Output containing the marker verifies with exit code 0."""
    tool = make_tool("shorebird", "echo 'Shorebird Engine • revision abc123'")

    result = InstallationVerifier().verify(tool, MARKER)

    assert result.verified is True
    assert result.outcome is Outcome.VERIFIED
    assert result.exit_code == 0
    assert result.returncode == 0
    assert "abc123" in result.output
    assert result.command == [str(tool), "--version"]
    assert "is installed" in result.message


@posix_only
def test_wrong_output_is_not_verified(make_tool):
    """An executable that runs but prints something else fails."""
    tool = make_tool("shorebird", "echo 'unknown command'")

    result = InstallationVerifier().verify(tool, MARKER)

    assert result.verified is False
    assert result.outcome is Outcome.MARKER_MISSING
    assert result.exit_code == 1
    assert result.output.strip() == "unknown command"
    assert "ran but" in result.message
    assert "could not be run" not in result.message


def test_missing_path_is_not_verified():
    """A nonexistent path fails without raising."""
    result = InstallationVerifier().verify("/nonexistent/tool", MARKER)

    assert result.verified is False
    assert result.outcome is Outcome.NOT_FOUND
    assert result.exit_code == 1
    assert result.returncode is None
    assert result.output == ""
    assert "could not be run" in result.message


def test_missing_command_name_is_not_found():
    """Bare names are looked up on PATH."""
    result = InstallationVerifier().verify(
        "installcheck-no-such-command-xyz", MARKER
    )

    assert result.outcome is Outcome.NOT_FOUND
    assert "PATH" in result.message


@posix_only
def test_marker_on_stderr_counts(make_tool):
    """Combined output is searched, not only stdout."""
    tool = make_tool("tool", "echo 'Shorebird Engine • revision xyz' >&2")

    result = InstallationVerifier().verify(tool, MARKER)

    assert result.verified is True


@posix_only
def test_exit_status_does_not_decide(make_tool):
    """The marker decides; a non-zero exit is only recorded."""
    tool = make_tool(
        "tool", "echo 'Shorebird Engine • revision xyz'\nexit 3"
    )

    result = InstallationVerifier().verify(tool, MARKER)

    assert result.verified is True
    assert result.returncode == 3


@posix_only
def test_custom_version_args(make_tool):
    """Configured version arguments are passed to the executable."""
    tool = make_tool("tool", 'echo "args: $*"')

    result = InstallationVerifier(version_args=["version", "--short"]).verify(
        tool, "args: version --short"
    )

    assert result.verified is True


@posix_only
def test_timeout_is_reported(make_tool):
    """A hanging executable is abandoned after the timeout."""
    tool = make_tool("slow", "echo booting\nsleep 10")

    result = InstallationVerifier(timeout=1).verify(tool, MARKER)

    assert result.outcome is Outcome.TIMED_OUT
    assert result.exit_code == 1
    assert result.returncode is None
    assert "booting" in result.output
    assert "no exit within 1s" in result.message
    assert result.duration < 5


@posix_only
def test_killed_by_signal_is_not_a_timeout(make_tool):
    """A tool that dies from a signal ran; it did not time out."""
    tool = make_tool("crashy", "echo 'unknown command'\nkill -HUP $$")

    result = InstallationVerifier().verify(tool, MARKER)

    assert result.outcome is Outcome.MARKER_MISSING
    assert result.returncode not in (0, None)
    assert "ran but" in result.message


@posix_only
def test_not_executable_file(make_tool):
    """A file without execute permission is not runnable."""
    tool = make_tool("shorebird", "echo hi", mode=0o644)

    result = InstallationVerifier().verify(tool, MARKER)

    assert result.outcome is Outcome.NOT_RUNNABLE
    assert "not executable" in result.message


def test_directory_is_not_runnable(tmp_path):
    result = InstallationVerifier().verify(tmp_path, MARKER)

    assert result.outcome is Outcome.NOT_RUNNABLE
    assert "directory" in result.message


@posix_only
def test_bad_interpreter_did_not_run(tmp_path):
    """The shell's could-not-execute statuses count as not runnable."""
    tool = tmp_path / "broken"
    tool.write_text("#!/nonexistent/interpreter\n")
    tool.chmod(0o755)

    result = InstallationVerifier().verify(tool, MARKER)

    assert result.outcome is Outcome.NOT_RUNNABLE
    assert result.returncode in (126, 127)


@posix_only
def test_relative_path_uses_workdir(make_tool, tmp_path):
    make_tool("shorebird", "echo 'Shorebird Engine • revision abc123'")

    result = InstallationVerifier(workdir=tmp_path).verify(
        "./bin/shorebird", MARKER
    )

    assert result.verified is True
    assert result.resolved_path == (tmp_path / "bin" / "shorebird").resolve()


@posix_only
def test_relative_workdir(make_tool, tmp_path, monkeypatch):
    """A relative workdir is applied once, not again after the cd."""
    make_tool("shorebird", "echo 'Shorebird Engine • revision abc123'")
    monkeypatch.chdir(tmp_path.parent)

    result = InstallationVerifier(workdir=tmp_path.name).verify(
        "bin/shorebird", MARKER
    )

    assert result.verified is True
    assert result.resolved_path.is_absolute()


def test_python_interpreter_as_target():
    """Runs anywhere Python runs, including Windows."""
    verifier = InstallationVerifier(
        version_args=["-c", "print('Shorebird Engine • revision abc123')"],
        env={"PYTHONIOENCODING": "utf-8"},
    )

    result = verifier.verify(sys.executable, MARKER)

    assert result.verified is True


@posix_only
def test_check_raises_marker_not_present(make_tool):
    tool = make_tool("tool", "echo 'unknown command'")

    with pytest.raises(MarkerNotPresent) as exc_info:
        InstallationVerifier().check(tool, MARKER)

    assert exc_info.value.result.outcome is Outcome.MARKER_MISSING
    assert exc_info.value.result.output.strip() == "unknown command"


@posix_only
def test_check_raises_timeout(make_tool):
    tool = make_tool("slow", "sleep 10")

    with pytest.raises(InvocationTimeout):
        InstallationVerifier(timeout=1).check(tool, MARKER)


def test_check_raises_not_found():
    with pytest.raises(ExecutableNotFound) as exc_info:
        InstallationVerifier().check("/nonexistent/tool", MARKER)

    assert exc_info.value.result.exit_code == 1


def test_empty_marker_rejected():
    with pytest.raises(ValueError, match="marker"):
        InstallationVerifier().verify(sys.executable, "")


class TestResolveExecutable:
    """Tests for resolve_executable."""

    def test_resolves_command_on_path(self):
        path = resolve_executable(sys.executable)
        assert path.exists()

    def test_nonexistent_path(self):
        with pytest.raises(ExecutableNotFound):
            resolve_executable("/nonexistent/tool")

    def test_empty_name(self):
        with pytest.raises(ExecutableNotFound):
            resolve_executable("")

    def test_directory(self, tmp_path):
        with pytest.raises(ExecutableNotRunnable):
            resolve_executable(tmp_path)

    @posix_only
    def test_relative_path_is_made_absolute(
        self, make_tool, tmp_path, monkeypatch
    ):
        make_tool("mytool", "echo hi")
        monkeypatch.chdir(tmp_path)

        path = resolve_executable("bin/mytool")

        assert path.is_absolute()
        assert path.samefile(tmp_path / "bin" / "mytool")

    @posix_only
    def test_bare_name_via_path(self, make_tool, tmp_path, monkeypatch):
        tool = make_tool("mytool", "echo hi")
        monkeypatch.setenv("PATH", str(tool.parent))

        assert resolve_executable("mytool") == tool
