# mpris_presence/app.py
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from .config import Config, parse_args
from .controller import PresenceController
from .cover_art import CoverArtResolver, CoverArtUploader
from .debug import setup_logging
from .errors import MetadataSourceError
from .metadata_stream import MetadataReader, playerctl_command
from .updates import UpdateChannel

logger = logging.getLogger(__name__)

UPLOAD_WORKERS = 4


def run(config: Config) -> None:
    """
    Mirror the player into Discord until the metadata process goes away.

    Raises MetadataSourceError when playerctl can't be started or exits.
    """
    channel = UpdateChannel()
    executor = ThreadPoolExecutor(max_workers=UPLOAD_WORKERS, thread_name_prefix="cover-upload")
    resolver = CoverArtResolver(channel, CoverArtUploader(config), executor)
    reader = MetadataReader(playerctl_command(config), channel, resolver.forward)
    controller = PresenceController(config)

    reader.start()
    try:
        controller.run(channel)
    finally:
        reader.stop()
        # uploads still running are abandoned
        executor.shutdown(wait=False, cancel_futures=True)
        controller.shutdown()

    if reader.error is not None:
        raise reader.error


def main(argv: Optional[Sequence[str]] = None) -> int:
    config = parse_args(argv)
    setup_logging(config.debug, config.log_file)

    logger.info("Watching %s… (Ctrl+C to stop)", config.player or "the active player")
    try:
        run(config)
    except MetadataSourceError as e:
        logger.critical("%s", e)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
    return 0
