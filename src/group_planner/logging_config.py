"""Centralized logging configuration for group-planner."""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "group_planner"


def setup_logging(
	name: str = ROOT_LOGGER,
	level: Optional[str] = None,
	log_dir: Optional[Path] = None,
) -> logging.Logger:
	"""
	Set up logging with console and file handlers.

	Args:
		name: Logger name
		level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to env var or INFO.
		log_dir: Directory for log files. Console only when omitted.

	Returns:
		Configured logger
	"""
	level = level or os.getenv("LOG_LEVEL", "INFO")
	log_level = getattr(logging, level.upper(), logging.INFO)

	logger = logging.getLogger(name)
	logger.setLevel(log_level)

	# Avoid duplicate handlers
	if logger.handlers:
		return logger

	detailed_formatter = logging.Formatter(
		"%(asctime)s [%(levelname)s] %(name)s:%(lineno)d - %(message)s",
		datefmt="%Y-%m-%d %H:%M:%S",
	)
	simple_formatter = logging.Formatter(
		"%(asctime)s [%(levelname)s] %(message)s",
		datefmt="%H:%M:%S",
	)

	console_handler = logging.StreamHandler(sys.stdout)
	console_handler.setLevel(log_level)
	console_handler.setFormatter(simple_formatter)
	logger.addHandler(console_handler)

	if log_dir is not None:
		log_path = Path(log_dir)
		log_path.mkdir(parents=True, exist_ok=True)

		file_handler = RotatingFileHandler(
			log_path / f"{name}.log",
			maxBytes=10 * 1024 * 1024,  # 10 MB
			backupCount=5,
		)
		file_handler.setLevel(logging.DEBUG)  # File gets all logs
		file_handler.setFormatter(detailed_formatter)
		file_handler.addFilter(SensitiveDataFilter())
		logger.addHandler(file_handler)

	return logger


class SensitiveDataFilter(logging.Filter):
	"""Mark log lines that mention credentials so they stand out in the file log."""

	SENSITIVE_PATTERNS = [
		"token",
		"secret",
		"authorization code",
		"refresh_token",
	]

	def filter(self, record: logging.LogRecord) -> bool:
		if isinstance(record.msg, str):
			msg_lower = record.msg.lower()
			for pattern in self.SENSITIVE_PATTERNS:
				if pattern in msg_lower:
					record.msg = f"[SENSITIVE] {record.msg}"
					break
		return True
