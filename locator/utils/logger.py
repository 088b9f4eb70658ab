"""Logging utilities."""

import logging
import sys
from pathlib import Path


def setup_logger(name: str = 'locator', log_level: int = logging.INFO, 
                log_file: str = None) -> logging.Logger:
    """Setup logger with console and optional file handler."""
    logger = logging.getLogger(name)
    logger.setLevel(log_level)
    
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    
    if not any(getattr(h, '_locator_console', False) for h in logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler._locator_console = True
        logger.addHandler(console_handler)
    
    if log_file:
        log_path = str(Path(log_file).resolve())
        has_file = any(isinstance(h, logging.FileHandler) and h.baseFilename == log_path
                       for h in logger.handlers)
        if not has_file:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
    
    return logger

