"""Logging configuration and audit logging."""

import json
import logging
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Union

from .config import ProviderSettings, get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(settings: Union[ProviderSettings, None] = None) -> None:
    """Configure provider logging."""
    settings = settings or get_settings()
    log_config = settings.logging

    logging.basicConfig(
        level=getattr(logging, log_config.level.upper()),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if log_config.file_path:
        log_path = Path(log_config.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            log_path,
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
        )
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logging.getLogger().addHandler(handler)

    audit_logger.configure(log_config.audit_enabled, log_config.audit_file)


class AuditLogger:
    """Audit logger for tracking controller operations."""

    def __init__(self) -> None:
        """Initialize audit logger."""
        self.enabled = True
        self.logger = logging.getLogger("ceph_provider.audit")

    def configure(self, enabled: bool, file_path: Union[str, None] = None) -> None:
        """Enable or disable auditing and attach an optional file handler."""
        self.enabled = enabled

        if enabled and file_path:
            log_path = Path(file_path)
            log_path.parent.mkdir(parents=True, exist_ok=True)

            handler = logging.FileHandler(file_path)
            handler.setFormatter(logging.Formatter("%(message)s"))
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    def log_operation(
        self,
        operation: str,
        resource: str,
        status: str,
        details: Union[Dict[str, Any], None] = None,
    ) -> None:
        """Log a controller operation to the audit log.

        Args:
            operation: Operation type (CREATE, READ, UPDATE, DELETE, IMPORT)
            resource: Resource being operated on (e.g., ceph_pool:rbd)
            status: Operation status (SUCCESS, FAILED, REMOVED)
            details: Additional operation details
        """
        if not self.enabled:
            return

        audit_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "operation": operation,
            "resource": resource,
            "status": status,
            "details": details or {},
        }

        self.logger.info(json.dumps(audit_entry, default=str))


# Global audit logger instance
audit_logger = AuditLogger()
