"""Tests for the git-remote-s3 entry point."""

import io
import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import InMemoryRemoteStore
from git_remote_s3.cli.main import RemoteHelperCLI, main
from git_remote_s3.remotes.remote import Remote
from git_remote_s3.utils.logging import PACKAGE_LOGGER


@pytest.fixture
def cli():
    return RemoteHelperCLI()


@pytest.fixture
def missing_config(tmp_path):
    return str(tmp_path / "no-such-config.toml")


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def run(cli, argv, stdin_text="", environ=None):
    stdout, stderr = io.StringIO(), io.StringIO()
    code = cli.run(
        argv,
        stdin=io.StringIO(stdin_text),
        stdout=stdout,
        stderr=stderr,
        environ=environ if environ is not None else {},
    )
    return code, stdout.getvalue(), stderr.getvalue()


class TestRemoteHelperCLI:
    @pytest.fixture
    def in_memory_remote(self, local_store):
        return Remote(local_store, InMemoryRemoteStore())

    def test_session_success(self, cli, missing_config, in_memory_remote):
        with patch("git_remote_s3.cli.main.Remote") as remote_cls:
            remote_cls.from_url.return_value = in_memory_remote
            code, stdout, stderr = run(
                cli,
                ["-c", missing_config, "origin", "s3://us-east-1/repo"],
                "capabilities\n\n",
            )

        assert code == 0
        assert stdout == "fetch\npush\n\n"
        url, git_dir = remote_cls.from_url.call_args[0]
        assert url == "s3://us-east-1/repo"
        assert git_dir == Path(".git")

    def test_git_dir_from_environment(
        self, cli, missing_config, in_memory_remote, tmp_path
    ):
        with patch("git_remote_s3.cli.main.Remote") as remote_cls:
            remote_cls.from_url.return_value = in_memory_remote
            run(
                cli,
                ["-c", missing_config, "origin", "s3://us-east-1/repo"],
                environ={"GIT_DIR": str(tmp_path)},
            )

        assert remote_cls.from_url.call_args[0][1] == tmp_path

    def test_config_from_environment(self, cli, missing_config, in_memory_remote):
        with patch("git_remote_s3.cli.main.Remote") as remote_cls:
            remote_cls.from_url.return_value = in_memory_remote
            run(
                cli,
                ["-c", missing_config, "origin", "s3://us-east-1/repo"],
                environ={"GIT_REMOTE_S3_PUSH_COMPARE_AND_SWAP": "true"},
            )

        config = remote_cls.from_url.call_args[1]["config"]
        assert config.push.compare_and_swap is True

    def test_failed_command_exits_with_error_chain(
        self, cli, missing_config, in_memory_remote
    ):
        with patch("git_remote_s3.cli.main.Remote") as remote_cls:
            remote_cls.from_url.return_value = in_memory_remote
            code, stdout, stderr = run(
                cli,
                ["-c", missing_config, "origin", "s3://us-east-1/repo"],
                "push refs/heads/nope:refs/heads/main\n\n",
            )

        assert code == 1
        assert stdout == ""
        assert "error: Command 'push refs/heads/nope:refs/heads/main' failed" in stderr
        assert "caused by: Unable to find local ref for refs/heads/nope" in stderr

    def test_malformed_command(self, cli, missing_config, in_memory_remote):
        with patch("git_remote_s3.cli.main.Remote") as remote_cls:
            remote_cls.from_url.return_value = in_memory_remote
            code, _, stderr = run(
                cli,
                ["-c", missing_config, "origin", "s3://us-east-1/repo"],
                "push refs/heads/main\n",
            )

        assert code == 1
        assert "missing ':'" in stderr

    def test_invalid_url(self, cli, missing_config, tmp_path):
        code, _, stderr = run(
            cli,
            ["-c", missing_config, "origin", "s3://no-separator"],
            environ={"GIT_DIR": str(tmp_path)},
        )

        assert code == 1
        assert "Invalid remote locator" in stderr

    def test_invalid_repo_config(self, cli, missing_config, tmp_path):
        (tmp_path / "remote-s3.toml").write_text("[push\ncompare_and_swap = ")

        code, _, stderr = run(
            cli,
            ["-c", missing_config, "origin", "s3://us-east-1/repo"],
            environ={"GIT_DIR": str(tmp_path)},
        )

        assert code == 1
        assert stderr.startswith("error: Failed to load config")

    def test_keyboard_interrupt(self, cli, missing_config):
        with patch("git_remote_s3.cli.main.Remote") as remote_cls:
            remote_cls.from_url.side_effect = KeyboardInterrupt
            code, _, stderr = run(
                cli, ["-c", missing_config, "origin", "s3://us-east-1/repo"]
            )

        assert code == 130
        assert "interrupted" in stderr

    def test_verbosity(self, cli, missing_config, in_memory_remote):
        with patch("git_remote_s3.cli.main.Remote") as remote_cls:
            remote_cls.from_url.return_value = in_memory_remote
            _, stdout, stderr = run(
                cli, ["-vv", "-c", missing_config, "origin", "s3://us-east-1/repo"]
            )

        assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG
        assert "Starting session for origin" in stderr
        assert stdout == ""

    def test_missing_arguments(self, cli):
        with pytest.raises(SystemExit):
            cli.run(["origin"])


def test_main_exits_with_run_status():
    with patch.object(RemoteHelperCLI, "run", return_value=1):
        with pytest.raises(SystemExit) as exc_info:
            main()
    assert exc_info.value.code == 1
