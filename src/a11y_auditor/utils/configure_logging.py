import logging
import sys
from tqdm import tqdm


class LogWithTqdm(logging.Handler):
    """
    A custom logging handler that redirects logging output to `tqdm.write()`,
    ensuring that log messages do not interfere with the progress bar display.
    """
    def emit(self, record):
        try:
            msg = self.format(record)
            # Write to stderr for consistency with tqdm's default stream.
            tqdm.write(msg, file=sys.stderr)
            self.flush()
        except Exception:
            self.handleError(record)


def _to_level(level, fallback):
    if isinstance(level, str):
        return getattr(logging, level.upper(), fallback)
    return level


def configure_logger(general_level='INFO', module_specific_levels=None, silenced_loggers=None):
    """
    Configures the root logger and specific module loggers with a
    TQDM-friendly handler.
    """
    tqdm_aware_handler = LogWithTqdm()
    formatter = logging.Formatter(
        "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"
    )
    tqdm_aware_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(_to_level(general_level, logging.INFO))

    # Replace handlers so repeated calls do not duplicate output
    root_logger.handlers.clear()
    root_logger.addHandler(tqdm_aware_handler)

    for name, level in (module_specific_levels or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.INFO))

    # Muzzle noisy loggers by setting their level high.
    for name, level in (silenced_loggers or {}).items():
        logging.getLogger(name).setLevel(_to_level(level, logging.CRITICAL))


def configure_from_config(config_manager) -> None:
    """Applies the 'debug' section of settings.json."""
    configure_logger(
        general_level=config_manager.get_nested("debug.level", "INFO"),
        module_specific_levels=config_manager.get_nested("debug.module_levels", {}),
        silenced_loggers=config_manager.get_nested("debug.silenced_loggers", {}),
    )
