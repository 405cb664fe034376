"""
Disc timecode arithmetic.
Converts mm:ss:ff timecodes (75 frames per second) to raw byte offsets and back.
"""

import re

from errors import FormatError


FRAMES_PER_SECOND = 75
SECONDS_PER_MINUTE = 60
SECTOR_SIZE = 2352  # Raw sector, one per frame

_COMPONENT = re.compile(r'[0-9]+')


def parse_timecode(time: str, strict: bool = False):
    """Split a timecode into (minutes, seconds, frames).

    Args:
        time: Timecode in mm:ss:ff form
        strict: Reject seconds > 59 and frames > 74 instead of accepting them as-is
    """
    if not isinstance(time, str):
        raise FormatError(f"Timecode must be a string, got {type(time).__name__}")

    parts = time.split(':')
    if len(parts) != 3:
        raise FormatError(f"Invalid timecode '{time}': expected mm:ss:ff")

    for part in parts:
        if not _COMPONENT.fullmatch(part):
            raise FormatError(f"Invalid timecode '{time}': '{part}' is not a number")

    minutes, seconds, frames = (int(p) for p in parts)

    if strict:
        if seconds >= SECONDS_PER_MINUTE:
            raise FormatError(f"Invalid timecode '{time}': seconds out of range")
        if frames >= FRAMES_PER_SECOND:
            raise FormatError(f"Invalid timecode '{time}': frames out of range")

    return minutes, seconds, frames


def time_to_frames(time: str, strict: bool = False) -> int:
    """Total frame count for a timecode."""
    minutes, seconds, frames = parse_timecode(time, strict)
    return (minutes * SECONDS_PER_MINUTE * FRAMES_PER_SECOND
            + seconds * FRAMES_PER_SECOND
            + frames)


def time_to_offset(time: str, strict: bool = False) -> int:
    """Byte offset of a timecode within a raw 2352-byte-sector image."""
    return time_to_frames(time, strict) * SECTOR_SIZE


def frames_to_time(frames: int) -> str:
    if frames < 0:
        raise FormatError(f"Frame count must be non-negative, got {frames}")
    seconds, frame = divmod(frames, FRAMES_PER_SECOND)
    minutes, second = divmod(seconds, SECONDS_PER_MINUTE)
    return f"{minutes:02d}:{second:02d}:{frame:02d}"


def offset_to_time(offset: int) -> str:
    """Timecode for a sector-aligned byte offset."""
    if offset < 0:
        raise FormatError(f"Offset must be non-negative, got {offset}")
    if offset % SECTOR_SIZE:
        raise FormatError(f"Offset {offset} is not aligned to {SECTOR_SIZE}-byte sectors")
    return frames_to_time(offset // SECTOR_SIZE)
