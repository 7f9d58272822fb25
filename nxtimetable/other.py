"""Package-wide logging setup."""
import logging


# Set up console logging for the package
logger = logging.getLogger("nxtimetable")
handler = logging.StreamHandler()
handler.setFormatter(logging.Formatter('%(levelname)s - %(message)s'))
logger.addHandler(handler)
logger.setLevel(logging.INFO)
