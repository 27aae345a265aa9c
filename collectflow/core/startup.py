"""Startup validation and bootstrap helpers."""

from __future__ import annotations

import logging

from collectflow.core.config import get_config
from collectflow.core.logging_config import configure_logging
from collectflow.core.schemas import WorkflowConfiguration, load_workflow_config
from collectflow.database.db import get_active_database_url, verify_database_connection

logger = logging.getLogger(__name__)


def validate_startup_config() -> WorkflowConfiguration:
    """Fail-fast config and connectivity checks. Returns the loaded workflow configuration."""
    config = get_config()
    workflow_config = load_workflow_config()

    database_ok = verify_database_connection()
    if not database_ok and config.DB_CONNECTIVITY_REQUIRED:
        raise RuntimeError("Database connectivity check failed.")
    if not database_ok:
        logger.warning(
            "startup.database.connectivity_optional_failed",
            extra={"event": "startup.database.connectivity_optional_failed"},
        )

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": get_active_database_url().split("://", 1)[0],
            "stage_count": len(workflow_config.stages),
        },
    )
    return workflow_config


def bootstrap() -> WorkflowConfiguration:
    """Initialize logging and validate runtime configuration."""
    configure_logging()
    return validate_startup_config()
