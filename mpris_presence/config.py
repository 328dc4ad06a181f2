# mpris_presence/config.py
import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from .debug import debug_enabled

# Discord application
APP_CLIENT_ID = "1210361074247802940"

DEFAULT_PLAYER = "kew"
DEFAULT_SEARCH_URL = "https://yewtu.be/search?q={query}&type=video"
DEFAULT_SECONDARY_LABEL = "Search MusicBrainz"
DEFAULT_SECONDARY_URL = "https://musicbrainz.org/search?query={query}&type=recording"
DEFAULT_UPLOAD_URL = "https://tmpfiles.org/api/v1/upload"


@dataclass(frozen=True)
class Config:
    app_id: str = APP_CLIENT_ID
    player: str = DEFAULT_PLAYER
    playerctl: str = "playerctl"
    retries: int = 3
    retry_delay: float = 1.0  # seconds
    resize_art: bool = False
    art_size: int = 512  # pixels, longest side
    show_secondary_button: bool = True
    search_url: str = DEFAULT_SEARCH_URL
    secondary_label: str = DEFAULT_SECONDARY_LABEL
    secondary_url: str = DEFAULT_SECONDARY_URL
    upload_url: str = DEFAULT_UPLOAD_URL
    fallback_image: str = ""
    debug: bool = False
    log_file: Optional[Path] = None


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1: {n}")
    return n


def _delay(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if seconds < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {seconds}")
    return seconds


def _search_template(value: str) -> str:
    if "{query}" not in value:
        raise argparse.ArgumentTypeError("search URL must contain {query}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mpris-presence",
        description="Show the track playing in an MPRIS player as Discord rich presence.",
    )
    parser.add_argument("-p", "--player", default=DEFAULT_PLAYER,
                        help="playerctl player name to follow (empty: any player)")
    parser.add_argument("--app-id", default=APP_CLIENT_ID, help="Discord application id")
    parser.add_argument("--playerctl", default="playerctl", help="playerctl executable")
    parser.add_argument("-r", "--retries", type=_positive_int, default=3,
                        help="attempts per presence update before it is dropped")
    parser.add_argument("--retry-delay", type=_delay, default=1.0,
                        help="seconds to wait between attempts")
    parser.add_argument("--resize-art", action="store_true",
                        help="shrink local cover art before uploading it")
    parser.add_argument("--art-size", type=_positive_int, default=512,
                        help="longest side in pixels for --resize-art")
    parser.add_argument("--no-secondary-button", dest="show_secondary_button",
                        action="store_false", help="only show the 'Listen along' button")
    parser.add_argument("--search-url", type=_search_template, default=DEFAULT_SEARCH_URL,
                        help="template for the 'Listen along' link, {query} is replaced")
    parser.add_argument("--secondary-label", default=DEFAULT_SECONDARY_LABEL,
                        help="label of the second button")
    parser.add_argument("--secondary-url", type=_search_template, default=DEFAULT_SECONDARY_URL,
                        help="template for the second button link, {query} is replaced")
    parser.add_argument("--upload-url", default=DEFAULT_UPLOAD_URL,
                        help="endpoint local cover art is uploaded to")
    parser.add_argument("--fallback-image", default="",
                        help="Discord asset key shown while no remote cover is known")
    parser.add_argument("-d", "--debug", action="store_true", default=debug_enabled(),
                        help="verbose logging, also written to --log-file")
    parser.add_argument("--log-file", type=Path, default=None, help="debug log location")
    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> Config:
    args = build_parser().parse_args(argv)
    return Config(
        app_id=args.app_id,
        player=args.player,
        playerctl=args.playerctl,
        retries=args.retries,
        retry_delay=args.retry_delay,
        resize_art=args.resize_art,
        art_size=args.art_size,
        show_secondary_button=args.show_secondary_button,
        search_url=args.search_url,
        secondary_label=args.secondary_label,
        secondary_url=args.secondary_url,
        upload_url=args.upload_url,
        fallback_image=args.fallback_image,
        debug=args.debug,
        log_file=args.log_file,
    )
