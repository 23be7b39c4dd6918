import os
import logging
import sys
from logging.handlers import RotatingFileHandler

from seawatch.shared.core.config import LogConfig

CONSOLE_FORMAT = '%(asctime)s - %(levelname)s - [%(name)s] - %(message)s'
FILE_FORMAT = '%(asctime)s - %(threadName)s - %(levelname)s - [%(name)s] - %(message)s'


class LoggerSetup:
    """
    Centralized logging for Seawatch.

    Every logger writes INFO and above to the console and, outside of tests,
    DEBUG and above to a rotating file named after the logger.
    """
    _initialized = False
    # Matches the log volume mounted into the service container
    _logs_dir = '/app/logs'
    _max_bytes = 10 * 1024 * 1024
    _backup_count = 5

    _noisy_loggers = ('urllib3', 'sqlalchemy', 'web3', 'websockets', 'aiosqlite')

    @classmethod
    def configure(cls, config: LogConfig) -> None:
        """
        Apply log directory and rotation settings.
        Only loggers created afterwards pick them up.
        """
        cls._logs_dir = config.log_dir
        cls._max_bytes = config.max_size
        cls._backup_count = config.backup_count

    @classmethod
    def log_path(cls, name: str) -> str:
        """
        Log file for a logger name.
        Dotted module paths use their last component, e.g.
        seawatch.services.replay.main -> main.log, ReplayOrchestrator -> ReplayOrchestrator.log
        """
        return os.path.join(cls._logs_dir, f"{name.rsplit('.', 1)[-1]}.log")

    @classmethod
    def _file_handler(cls, name: str) -> RotatingFileHandler:
        path = cls.log_path(name)
        os.makedirs(os.path.dirname(path), exist_ok=True)

        handler = RotatingFileHandler(
            path,
            maxBytes=cls._max_bytes,
            backupCount=cls._backup_count,
            encoding='utf-8'
        )
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
        return handler

    @classmethod
    def setup(cls, name: str) -> logging.Logger:
        """
        Set up and return a logger.

        Args:
            name: __name__ for module loggers, __class__.__name__ for class loggers
        Returns:
            logging.Logger: Configured logger instance
        """
        logger = logging.getLogger(name)
        logger.setLevel(logging.DEBUG)

        if not logger.handlers:
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
            logger.addHandler(console_handler)

            # pytest captures console output, no files
            if "pytest" not in sys.modules:
                try:
                    logger.addHandler(cls._file_handler(name))
                except OSError as e:
                    console_handler.setLevel(logging.DEBUG)
                    logger.warning(f"Could not set up file logging: {str(e)}")

        if not cls._initialized:
            for noisy in cls._noisy_loggers:
                logging.getLogger(noisy).setLevel(logging.WARNING)
            cls._initialized = True

        return logger
