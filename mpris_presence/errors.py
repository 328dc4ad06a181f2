# mpris_presence/errors.py
from typing import Optional


class PresenceAppError(Exception):
    pass


class MetadataSourceError(PresenceAppError):
    """The metadata process could not be started or died. Not retried."""


class MetadataStreamClosed(MetadataSourceError):
    def __init__(self, returncode: Optional[int]):
        super().__init__(f"metadata stream ended unexpectedly (exit code {returncode})")
        self.returncode = returncode


class PresenceError(PresenceAppError):
    """A connect/send on the presence session failed; worth retrying."""


class CoverArtError(PresenceAppError):
    pass
