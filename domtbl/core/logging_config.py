# domtbl/core/logging_config.py
import logging
import os
from datetime import datetime
from typing import Optional, Dict, Any


class LoggingManager:
    """Centralized logging configuration for the domtbl pipeline"""

    DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    DEFAULT_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

    @staticmethod
    def level_for(verbosity: int, quiet: bool = False) -> int:
        """Map a -v count to a log level (0=INFO, 1+=DEBUG); quiet means WARNING"""
        if quiet:
            return logging.WARNING
        return logging.DEBUG if verbosity > 0 else logging.INFO

    @staticmethod
    def configure(
        verbose: bool = False,
        log_file: Optional[str] = None,
        component: str = "domtbl",
        log_dir: Optional[str] = None,
        config: Optional[Dict[str, Any]] = None,
        level: Optional[int] = None
    ) -> logging.Logger:
        """Configure logging for the application

        Args:
            verbose: Enable debug logging if True
            log_file: Specific log file path (overrides automatic naming)
            component: Component name for logger and automatic log file naming
            log_dir: Directory for log files
            config: Configuration dictionary that may contain logging settings
            level: Explicit log level, overrides verbose

        Returns:
            Configured logger instance
        """
        logging_config = (config or {}).get('logging', {})
        if level is not None:
            log_level = level
        elif verbose:
            log_level = logging.DEBUG
        else:
            log_level = logging.getLevelName(str(logging_config.get('level', 'INFO')).upper())
            if not isinstance(log_level, int):
                log_level = logging.INFO
        log_dir = log_dir or logging_config.get('log_dir')

        handlers = [logging.StreamHandler()]

        if log_file or log_dir:
            if not log_file:
                # Auto-generate log filename based on component and timestamp
                timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
                os.makedirs(log_dir, exist_ok=True)
                log_file = os.path.join(log_dir, f"{component}_{timestamp}.log")

            handlers.append(logging.FileHandler(log_file))

        log_format = logging_config.get('format', LoggingManager.DEFAULT_FORMAT)
        formatter = logging.Formatter(log_format, LoggingManager.DEFAULT_DATE_FORMAT)
        for handler in handlers:
            handler.setFormatter(formatter)

        logging.basicConfig(
            level=log_level,
            handlers=handlers,
            force=True
        )

        logger = logging.getLogger(component)
        logger.debug(f"Logging initialized for {component} at level {logging.getLevelName(log_level)}")
        if log_file:
            logger.info(f"Log file: {log_file}")

        return logger
