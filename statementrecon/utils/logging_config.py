import logging
import sys


def configure_logging(level=logging.INFO, stream=None):
    """
    Configure logging for the application.
    Per-chunk reconciliation decisions are logged at DEBUG, so normal runs stay quiet.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=stream or sys.stdout,
    )

    # Keep our own loggers at the requested level
    logging.getLogger("statementrecon").setLevel(level)

    # Return logger for module use if needed
    return logging.getLogger(__name__)
