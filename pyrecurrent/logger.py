"""
Logging configuration for pyrecurrent
"""
import logging
import sys

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

def setup_logging(level=logging.INFO, log_file=None, capture_warnings=True):
    """
    Configure the ``pyrecurrent`` logger for a formatting run.

    Parameters
    ----------
    level : int
        Logging level (default: logging.INFO)
    log_file : str, optional
        Path to log file. If None, logs only to console.
    capture_warnings : bool, optional
        Route ``warnings.warn`` messages (e.g. degenerate interval warnings
        raised while closing surveys) through the ``py.warnings`` logger so
        they land in the same handlers. Default True.

    Returns
    -------
    logger : logging.Logger
        Configured logger instance

    Examples
    --------
    >>> from pyrecurrent.logger import setup_logging
    >>> logger = setup_logging(level=logging.DEBUG, log_file='surveys.log')
    >>> logger.info("Building survey table for 12 camera sites")
    """
    logger = logging.getLogger('pyrecurrent')
    logger.setLevel(level)

    # repeated calls replace handlers rather than stacking them
    warn_logger = logging.getLogger('py.warnings')
    for handler in logger.handlers:
        warn_logger.removeHandler(handler)
        handler.close()
    logger.handlers = []

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    # never switch capture off, another package may rely on it
    if capture_warnings:
        logging.captureWarnings(True)
        for handler in handlers:
            warn_logger.addHandler(handler)

    return logger

# Default logger
logger = logging.getLogger('pyrecurrent')
