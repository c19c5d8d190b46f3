"""Filename -> ScreenshotIdentity.

Two conventions are understood, both '_'-delimited with the channel first:

    xqc_Sat-Jan-18-2025_1_06_05-PM.png        (browser extension)
    ChannelA_2024-05-01_001.png               (ISO date, optional time/sequence)

Either may carry the browser's ' (n)' duplicate-download suffix before the
extension. The channel may itself contain underscores.
"""
import re
import unicodedata
from datetime import datetime

from .default_rules import IMAGE_EXTENSIONS
from .errors import UnrecognizedFormat
from .models import ScreenshotIdentity

_DUP_SUFFIX = r"(?:\s*\(\d+\))?"

EXTENSION_PATTERN = re.compile(
    r"^(?P<channel>.+)"
    r"_(?P<date>[A-Za-z]{3}-[A-Za-z]{3}-\d{2}-\d{4})"
    r"_(?P<hour>\d{1,2})_(?P<minute>\d{2})_(?P<second>\d{2})-(?P<meridiem>AM|PM)"
    + _DUP_SUFFIX + r"$"
)

ISO_PATTERN = re.compile(
    r"^(?P<channel>.+)"
    r"_(?P<date>\d{4}-\d{2}-\d{2})"
    r"(?:_(?P<time>\d{2}[-.]\d{2}[-.]\d{2}))?"
    r"(?:_(?P<seq>\d+))?"
    + _DUP_SUFFIX + r"$"
)

_UNSAFE = re.compile(r'[<>:"/\\|?*\x00-\x1f\x7f]')
_WHITESPACE = re.compile(r"\s+")


def normalize_channel(raw: str) -> str:
    name = unicodedata.normalize("NFKC", raw).casefold()
    name = _WHITESPACE.sub("_", name)
    name = _UNSAFE.sub("_", name)
    name = name.strip("._ ")
    if name in ("", ".", ".."):
        raise UnrecognizedFormat(f"Channel name {raw!r} is empty after normalization")
    return name


def _split_extension(filename: str) -> tuple[str, str]:
    stem, dot, ext = filename.rpartition(".")
    if not dot or not stem:
        raise UnrecognizedFormat(f"No extension: {filename!r}")
    ext = "." + ext.lower()
    if ext not in IMAGE_EXTENSIONS:
        raise UnrecognizedFormat(f"Not an image extension ({ext}): {filename!r}")
    return stem, ext


def _extension_timestamp(m: re.Match) -> datetime:
    day = datetime.strptime(m["date"], "%a-%b-%d-%Y")
    clock = datetime.strptime(
        f"{m['hour']}:{m['minute']}:{m['second']} {m['meridiem']}", "%I:%M:%S %p"
    )
    return day.replace(hour=clock.hour, minute=clock.minute, second=clock.second)


def _iso_timestamp(m: re.Match) -> datetime:
    day = datetime.strptime(m["date"], "%Y-%m-%d")
    if m["time"]:
        h, mi, s = re.split(r"[-.]", m["time"])
        day = day.replace(hour=int(h), minute=int(mi), second=int(s))
    return day


def parse(filename: str) -> ScreenshotIdentity:
    """Parse a bare filename (no directory part).

    Raises UnrecognizedFormat for anything that is not a screenshot name.
    """
    stem, ext = _split_extension(filename)

    for pattern, to_timestamp in (
        (EXTENSION_PATTERN, _extension_timestamp),
        (ISO_PATTERN, _iso_timestamp),
    ):
        m = pattern.match(stem)
        if m is None:
            continue
        try:
            timestamp = to_timestamp(m)
        except ValueError as exc:
            raise UnrecognizedFormat(f"Bad date/time in {filename!r}: {exc}") from exc
        return ScreenshotIdentity(
            channel=normalize_channel(m["channel"]),
            timestamp=timestamp,
            extension=ext,
            filename=filename,
        )

    raise UnrecognizedFormat(f"Not a screenshot name: {filename!r}")


def is_screenshot(filename: str) -> bool:
    try:
        parse(filename)
    except UnrecognizedFormat:
        return False
    return True
