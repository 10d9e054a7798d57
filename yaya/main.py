"""Main entry point for the Yaya service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import uvicorn

from yaya.api.app import create_app
from yaya.config.environment import EnvironmentConfig
from yaya.config.exceptions import ConfigurationError
from yaya.config.loader import load_config
from yaya.config.models import AppConfig
from yaya.dialog.machine import DialogStateMachine
from yaya.logging import get_logger
from yaya.logging.config import configure_logging
from yaya.matching.engine import WorkerMatcher
from yaya.notifications.gateway import AfricasTalkingGateway, MessageGateway
from yaya.notifications.service import NotificationService
from yaya.persistence.database import close_database, init_database
from yaya.persistence.store import SqlAlchemyStore
from yaya.pipeline.runner import JobPostingPipeline
from yaya.scheduler.service import SchedulerService

logger = get_logger(__name__, component="cli")


@dataclass
class Services:
    """Wired collaborators shared by the API, CLI and scheduler."""

    store: SqlAlchemyStore
    gateway: MessageGateway
    dialog: DialogStateMachine
    matcher: WorkerMatcher
    notification_service: NotificationService
    pipeline: JobPostingPipeline


def load_runtime_config(
    config_path: Optional[Path], log_level_override: Optional[str]
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and resolve the effective log level.

    Log level priority: CLI > environment > config file.

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level

    return app_config, env_config


def build_services(
    app_config: AppConfig,
    env_config: EnvironmentConfig,
    gateway: Optional[MessageGateway] = None,
) -> Services:
    """Create the store, gateway and services. init_database() must run first."""
    store = SqlAlchemyStore()
    gateway = gateway or AfricasTalkingGateway(
        username=env_config.africastalking_username,
        api_key=env_config.africastalking_api_key,
        sender_id=env_config.africastalking_sender_id,
        sandbox=app_config.notifications.sandbox,
        timeout=app_config.notifications.request_timeout,
    )
    matcher = WorkerMatcher(store, limit=app_config.matching.max_workers_per_job)
    notification_service = NotificationService(
        store,
        gateway,
        default_country_code=app_config.notifications.default_country_code,
        max_concurrency=app_config.notifications.max_concurrency,
    )
    return Services(
        store=store,
        gateway=gateway,
        dialog=DialogStateMachine(store, store, app_config.dialog),
        matcher=matcher,
        notification_service=notification_service,
        pipeline=JobPostingPipeline(store, matcher, notification_service),
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Yaya Labor - USSD job matching and SMS notification service"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present, else built-in defaults)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument("--host", default=None, help="Bind address (overrides config)")
    parser.add_argument("--port", type=int, default=None, help="Bind port (overrides config)")
    parser.add_argument(
        "--reconcile-once",
        action="store_true",
        help="Send all pending match notifications and exit",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the Yaya service.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    args = build_parser().parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "Yaya service starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "reconcile_once": args.reconcile_once,
                "sms_configured": env_config.sms_credentials_configured,
            },
        )

        init_database(env_config.database_url)
        services = build_services(app_config, env_config)

        if args.reconcile_once:
            result = services.pipeline.reconcile_pending(app_config.notifications.reconcile_batch_size)
            close_database()
            logger.info(
                "Yaya service stopped",
                extra={"event": "service.stopping", "uptime_seconds": round(time.time() - start_time, 2)},
            )
            return 1 if result.had_errors else 0

        return serve(app_config, services, args.host, args.port, start_time)

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


def serve(
    app_config: AppConfig,
    services: Services,
    host: Optional[str],
    port: Optional[int],
    start_time: float,
) -> int:
    """Run the HTTP API until interrupted, with optional scheduled reconciliation."""
    app = create_app(
        directory=services.store,
        dialog=services.dialog,
        pipeline=services.pipeline,
        matcher=services.matcher,
        notification_service=services.notification_service,
    )

    scheduler_service = None
    interval = app_config.notifications.reconcile_interval_seconds
    if interval:
        batch_size = app_config.notifications.reconcile_batch_size
        scheduler_service = SchedulerService(
            job_callable=lambda: services.pipeline.reconcile_pending(batch_size),
            interval_seconds=interval,
        )
        scheduler_service.start()

    try:
        # uvicorn installs its own SIGINT/SIGTERM handlers and returns on shutdown
        uvicorn.run(
            app,
            host=host or app_config.server.host,
            port=port or app_config.server.port,
            log_config=None,
        )
    finally:
        if scheduler_service is not None:
            scheduler_service.shutdown(wait=False)
        close_database()
        logger.info(
            "Yaya service stopped",
            extra={"event": "service.stopping", "uptime_seconds": round(time.time() - start_time, 2)},
        )
    return 0


def cli() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    cli()
