"""Unit tests for the main entry point.

Tests the main() function including:
- CLI argument parsing
- Log level priority (CLI > env > config)
- Service wiring
- Reconcile-once mode vs server mode
- Exit code handling
"""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from tests.helpers import RecordingGateway, job_create, worker_create
from yaya.config.environment import EnvironmentConfig
from yaya.config.exceptions import ConfigurationError
from yaya.config.models import AppConfig
from yaya.main import build_parser, build_services, load_runtime_config, main, serve
from yaya.persistence.database import close_database, init_database
from yaya.pipeline.models import ReconcileResult
from yaya.utils.timestamps import utc_now


class TestBuildParser:
    def test_defaults(self):
        args = build_parser().parse_args([])

        assert args.config is None
        assert args.log_level is None
        assert args.host is None
        assert args.port is None
        assert args.reconcile_once is False

    def test_all_options(self):
        args = build_parser().parse_args(
            ["--config", "cfg.yaml", "--log-level", "DEBUG", "--host", "127.0.0.1", "--port", "9000", "--reconcile-once"]
        )

        assert args.config == Path("cfg.yaml")
        assert args.log_level == "DEBUG"
        assert args.port == 9000
        assert args.reconcile_once is True


class TestLoadRuntimeConfig:
    """Test suite for load_runtime_config helper."""

    @pytest.mark.parametrize(
        "cli_level,env_level,expected",
        [
            ("ERROR", "DEBUG", "ERROR"),
            (None, "DEBUG", "DEBUG"),
            (None, None, "WARNING"),
        ],
    )
    def test_log_level_priority(self, cli_level, env_level, expected):
        app_config = AppConfig.model_validate({"logging": {"level": "WARNING"}})
        env_config = EnvironmentConfig(log_level=env_level)

        with patch("yaya.main.load_config", return_value=(app_config, env_config)):
            _, resolved = load_runtime_config(None, cli_level)

        assert resolved.log_level == expected


class TestBuildServices:
    def test_wires_configured_limits(self):
        app_config = AppConfig.model_validate(
            {"matching": {"max_workers_per_job": 5}, "notifications": {"max_concurrency": 2}}
        )

        services = build_services(app_config, EnvironmentConfig(), gateway=RecordingGateway())

        assert services.matcher.limit == 5
        assert services.notification_service.max_concurrency == 2
        assert services.notification_service.default_country_code == "254"
        assert services.pipeline.matcher is services.matcher
        assert services.dialog.directory is services.store

    def test_default_gateway_uses_environment_credentials(self):
        app_config = AppConfig.model_validate({"notifications": {"sandbox": True}})
        env_config = EnvironmentConfig(africastalking_username="yaya", africastalking_api_key="key")

        services = build_services(app_config, env_config)

        assert services.gateway.username == "yaya"
        assert "sandbox" in services.gateway.url


class TestMain:
    """Test suite for main()."""

    @patch("yaya.main.configure_logging")
    @patch("yaya.main.load_runtime_config")
    def test_configuration_error_exits_1(self, mock_load, mock_logging, capsys):
        mock_load.side_effect = ConfigurationError("Configuration validation failed")

        assert main([]) == 1
        assert "Configuration Error" in capsys.readouterr().err

    @patch("yaya.main.configure_logging")
    @patch("yaya.main.build_services")
    @patch("yaya.main.close_database")
    @patch("yaya.main.init_database")
    @patch("yaya.main.load_runtime_config")
    def test_reconcile_once_exit_codes(self, mock_load, mock_init, mock_close, mock_build, mock_logging):
        mock_load.return_value = (AppConfig(), EnvironmentConfig(database_url="sqlite:///:memory:"))
        pipeline = mock_build.return_value.pipeline
        now = utc_now()

        pipeline.reconcile_pending.return_value = ReconcileResult(run_started_at=now, run_finished_at=now)
        assert main(["--reconcile-once"]) == 0

        pipeline.reconcile_pending.return_value = ReconcileResult(
            run_started_at=now, run_finished_at=now, error_message="no such table"
        )
        assert main(["--reconcile-once"]) == 1

        pipeline.reconcile_pending.assert_called_with(100)
        mock_init.assert_called_with("sqlite:///:memory:")
        assert mock_close.call_count == 2

    @patch("yaya.main.configure_logging")
    @patch("yaya.main.serve")
    @patch("yaya.main.build_services")
    @patch("yaya.main.init_database")
    @patch("yaya.main.load_runtime_config")
    def test_server_mode(self, mock_load, mock_init, mock_build, mock_serve, mock_logging):
        app_config = AppConfig()
        mock_load.return_value = (app_config, EnvironmentConfig())
        mock_serve.return_value = 0

        assert main(["--port", "9001"]) == 0

        args = mock_serve.call_args.args
        assert args[0] is app_config
        assert args[2:4] == (None, 9001)

    @patch("yaya.main.configure_logging")
    @patch("yaya.main.init_database")
    @patch("yaya.main.load_runtime_config")
    def test_startup_failure_exits_1(self, mock_load, mock_init, mock_logging, capsys):
        mock_load.return_value = (AppConfig(), EnvironmentConfig())
        mock_init.side_effect = RuntimeError("disk full")

        assert main([]) == 1
        assert "Fatal error" in capsys.readouterr().err

    @patch("yaya.main.configure_logging")
    def test_reconcile_once_against_real_database(self, mock_logging, tmp_path, clean_env):
        """Test a pending match is sent by a one-shot reconciliation."""
        db_url = f"sqlite:///{tmp_path / 'yaya.db'}"
        clean_env.setenv("DATABASE_URL", db_url)
        clean_env.chdir(tmp_path)

        init_database(db_url)
        services = build_services(AppConfig(), EnvironmentConfig(database_url=db_url), gateway=RecordingGateway())
        worker = services.store.create_worker(worker_create())
        job = services.store.create_job(job_create())
        services.store.create_match(job.id, worker.id)
        close_database()

        gateway = RecordingGateway()
        real_build = build_services

        def build_with_fake_gateway(app_config, env_config):
            return real_build(app_config, env_config, gateway=gateway)

        with patch("yaya.main.build_services", side_effect=build_with_fake_gateway):
            assert main(["--reconcile-once"]) == 0

        assert gateway.recipients == ["+254712345678"]


class TestServe:
    @patch("yaya.main.close_database")
    @patch("yaya.main.uvicorn")
    @patch("yaya.main.SchedulerService")
    def test_starts_scheduler_when_interval_set(self, mock_scheduler, mock_uvicorn, mock_close):
        app_config = AppConfig.model_validate(
            {"notifications": {"sandbox": True, "reconcile_interval": "15m"}, "server": {"port": 8080}}
        )
        services = Mock()

        assert serve(app_config, services, None, None, 0.0) == 0

        assert mock_scheduler.call_args.kwargs["interval_seconds"] == 900
        mock_scheduler.return_value.start.assert_called_once()
        mock_scheduler.return_value.shutdown.assert_called_once_with(wait=False)
        assert mock_uvicorn.run.call_args.kwargs["port"] == 8080
        mock_close.assert_called_once()

    @patch("yaya.main.close_database")
    @patch("yaya.main.uvicorn")
    @patch("yaya.main.SchedulerService")
    def test_no_scheduler_by_default(self, mock_scheduler, mock_uvicorn, mock_close):
        serve(AppConfig(), Mock(), "127.0.0.1", 9000, 0.0)

        mock_scheduler.assert_not_called()
        kwargs = mock_uvicorn.run.call_args.kwargs
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 9000
