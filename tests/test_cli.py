"""
CLI Tests
Argument parsing, YAML profiles and command exit codes.
"""

from argparse import Namespace
from unittest.mock import AsyncMock, patch

import pytest

import main
from api.config import get_config
from api.logging_config import setup_logging
from core.models import ApplicationResult, BatchResult


class TestParser:

    def test_scrape_args(self):
        args = main.build_parser().parse_args([
            "scrape", "--platform", "indeed", "--keywords", "backend engineer", "--country", "us", "--quantity", "5",
        ])
        assert args.command == "scrape"
        assert args.job_type == "Remote"
        assert args.quantity == 5

    def test_platform_choices_enforced(self):
        with pytest.raises(SystemExit):
            main.build_parser().parse_args(["test-platform", "--platform", "monster"])

    def test_apply_defaults(self):
        args = main.build_parser().parse_args(["apply", "--platform", "linkedin"])
        assert args.job_url is None
        assert args.status == "pending"
        assert args.limit == 50

    def test_stats_dashboard_flag(self):
        assert main.build_parser().parse_args(["stats", "--dashboard"]).dashboard is True
        assert main.build_parser().parse_args(["stats"]).dashboard is False


class TestProfile:

    def test_load_profile(self, tmp_path):
        path = tmp_path / "profile.yaml"
        path.write_text(
            "first_name: Jane\n"
            "last_name: Doe\n"
            "email: jane@example.com\n"
            "cover_letter: |\n"
            "  Happy to chat.\n"
        )

        profile = main.load_profile(str(path))

        assert profile.full_name == "Jane Doe"
        assert profile.email == "jane@example.com"
        assert profile.cover_letter.strip() == "Happy to chat."

    def test_no_profile(self):
        assert main.load_profile(None) is None


class TestCommands:

    @pytest.mark.asyncio
    async def test_apply_single_job_exit_code(self):
        args = Namespace(job_url="https://www.indeed.com/viewjob?jk=1", platform=None, profile=None)
        failed = ApplicationResult(job_id=None, platform="indeed", status="failed")

        with patch.object(main, "run_with_orchestrator", AsyncMock(return_value=failed)):
            assert await main.apply(args) == 1

    @pytest.mark.asyncio
    async def test_apply_by_filter_exit_code(self):
        args = Namespace(job_url=None, platform="indeed", profile=None, status="pending",
                         date_from=None, date_to=None, limit=10)

        with patch.object(main, "run_with_orchestrator", AsyncMock(return_value=BatchResult())):
            assert await main.apply(args) == 0


class TestLogging:

    def test_log_files_go_to_log_dir(self, tmp_path):
        logger = setup_logging("cli_log_dir_check", tmp_path)
        try:
            logger.error("disk full")
            assert (tmp_path / "cli_log_dir_check.log").exists()
            assert "disk full" in (tmp_path / "cli_log_dir_check_errors.log").read_text()
        finally:
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

    def test_main_uses_configured_log_dir(self):
        command = AsyncMock(return_value=0)

        with patch.object(main.sys, "argv", ["main.py", "stats"]), \
                patch.object(main, "setup_logging") as setup, \
                patch.object(main, "check_environment"), \
                patch.dict(main.COMMANDS, {"stats": command}):
            with pytest.raises(SystemExit) as exit_info:
                main.main()

        assert exit_info.value.code == 0
        setup.assert_called_once_with("", get_config().LOG_DIR)
