import argparse
import logging
import sys

from prayercal.core.config import CalendarConfig, load_config
from prayercal.core.errors import ConfigError
from prayercal.core.runner import EXIT_FAILURE, run

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s'


def setup_basic_logging():
    """Setup basic stdout logging before config is loaded"""
    root_logger = logging.getLogger()
    if not root_logger.handlers:  # Only add handler if none exists
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)
        root_logger.setLevel(logging.DEBUG)
        logging.debug("Basic logging initialized")


def setup_logging(config: CalendarConfig) -> None:
    """Apply configured level and add a file handler when logging.file is set"""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, config.log_level))

    if config.log_file:
        file_handler = logging.FileHandler(config.log_file)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(file_handler)


def main(argv=None) -> int:
    setup_basic_logging()

    parser = argparse.ArgumentParser(description='Generate an ICS calendar of today\'s prayer times')
    parser.add_argument('--config',
                        help='Path to config file (default: ./config.yaml, optional)')
    parser.add_argument('--output-dir',
                        help='Directory the ICS file is written to (default: docs)')
    parser.add_argument('--log-level',
                        help='Logging level, e.g. DEBUG or INFO')
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config, output_dir=args.output_dir, log_level=args.log_level)
    except ConfigError as e:
        logging.error(f"ConfigError: {e.message}")
        return EXIT_FAILURE

    setup_logging(config)
    return run(config)


if __name__ == "__main__":
    sys.exit(main())
