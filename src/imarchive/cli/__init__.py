"""
Initialize the CLI package. Contains shared CLI utilities and configuration.
"""

import logging

LOG_FORMAT = "%(levelname)s %(name)s - %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Configure global logging for CLI commands."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)
    # h5py and urllib3 are chatty at DEBUG
    logging.getLogger("h5py").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
