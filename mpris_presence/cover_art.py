# mpris_presence/cover_art.py
import hashlib
import logging
import tempfile
from concurrent.futures import Executor
from pathlib import Path
from typing import Optional

import requests
from PIL import Image, UnidentifiedImageError

from .config import Config
from .errors import CoverArtError
from .models import TrackRecord
from .updates import ArtResolved, NewTrack, UpdateChannel

logger = logging.getLogger(__name__)

UPLOAD_TIMEOUT = 15  # seconds
RESIZE_DIR = Path(tempfile.gettempdir()) / "mpris-presence"


def direct_download_url(url: str) -> str:
    """tmpfiles.org answers with a page link, the image itself lives under /dl/."""
    return url.replace("https://tmpfiles.org/", "https://tmpfiles.org/dl/", 1)


def resized_path(source: str) -> Path:
    digest = hashlib.sha1(source.encode("utf-8")).hexdigest()[:12]
    return RESIZE_DIR / f"cover-{digest}.png"


def shrink_image(source: str, size: int) -> str:
    """
    Returns the path to upload: a copy no larger than size x size, or the
    source itself when it already fits.
    """
    with Image.open(source) as im:
        width, height = im.size
        if width <= size and height <= size:
            return source

        im.thumbnail((size, size), Image.Resampling.LANCZOS)
        if im.mode not in {"RGB", "RGBA", "L", "LA"}:
            im = im.convert("RGBA")

        target = resized_path(source)
        target.parent.mkdir(parents=True, exist_ok=True)
        im.save(target, format="PNG")
        logger.debug("Resized %s from %dx%d to %dx%d", source, width, height, *im.size)
        return str(target)


class CoverArtUploader:
    def __init__(self, config: Config, session: Optional[requests.Session] = None):
        self.upload_url = config.upload_url
        self.resize_to = config.art_size if config.resize_art else None
        self._http = session or requests.Session()

    def upload(self, path: str) -> str:
        if self.resize_to:
            path = shrink_image(path, self.resize_to)

        with open(path, "rb") as fh:
            r = self._http.post(
                self.upload_url,
                files={"file": (Path(path).name, fh)},
                timeout=UPLOAD_TIMEOUT,
            )
        r.raise_for_status()

        try:
            body = r.json()
        except ValueError as e:
            raise CoverArtError(f"upload response is not JSON: {e}") from e

        if not isinstance(body, dict):
            raise CoverArtError("upload response is not an object")
        status = body.get("status")
        if status is not None and status != "success":
            raise CoverArtError(f"upload rejected with status {status!r}")
        data = body.get("data")
        url = data.get("url") if isinstance(data, dict) else None
        if not isinstance(url, str) or not url:
            raise CoverArtError("upload response has no data.url")

        return direct_download_url(url)


class CoverArtResolver:
    """
    Sits between the metadata reader and the channel.

    Every track is forwarded straight away. When its cover is a local file we
    haven't started uploading yet, an upload is handed to the executor; the
    result comes back through the channel as ``ArtResolved``.
    """

    def __init__(self, channel: UpdateChannel, uploader: CoverArtUploader, executor: Executor):
        self.channel = channel
        self.uploader = uploader
        self.executor = executor
        self.last_uploaded: str = ""

    def needs_upload(self, track: TrackRecord) -> bool:
        return track.art_is_local and track.art_reference != self.last_uploaded

    def forward(self, track: TrackRecord) -> None:
        upload = self.needs_upload(track)
        if upload:
            # claim the path now so the next tick doesn't start a second upload
            self.last_uploaded = track.art_reference

        self.channel.send(NewTrack(track))

        if upload:
            logger.debug("Uploading cover %s", track.art_reference)
            self.executor.submit(self._upload, track.art_reference)

    def _upload(self, path: str) -> None:
        try:
            url = self.uploader.upload(path)
        except FileNotFoundError:
            logger.warning("Cover %s does not exist or is a broken symlink", path)
            return
        except (UnidentifiedImageError, CoverArtError, requests.RequestException, OSError) as e:
            logger.error("Failed to upload cover %s: %s", path, e)
            return
        except Exception:
            # nobody reads the future, so anything unexpected has to be logged here
            logger.exception("Failed to upload cover %s", path)
            return

        logger.info("Cover uploaded: %s", url)
        self.channel.send(ArtResolved(url=url, source=path))
