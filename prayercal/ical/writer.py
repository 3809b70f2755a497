import logging
import os
from pathlib import Path

from prayercal.core.errors import WriteError
from prayercal.core.models import CalendarDocument

logger = logging.getLogger(__name__)


def write_calendar(document: CalendarDocument, output_dir: str, filename: str) -> Path:
    """Serialise document and overwrite output_dir/filename in one go. Returns the file path."""
    content = document.to_ical()
    directory = Path(os.path.expanduser(str(output_dir)))
    file_path = directory / filename

    try:
        if not directory.exists():
            logger.info(f"Creating output directory: {directory}")
            directory.mkdir(parents=True)

        logger.info(f"Writing ICS file to: {file_path}")
        with open(file_path, "wb") as f:
            f.write(content)
    except OSError as e:
        raise WriteError(f"Error writing ICS file {file_path}: {e}") from e

    logger.info(f"{filename} written with {len(document.events)} events")
    return file_path
