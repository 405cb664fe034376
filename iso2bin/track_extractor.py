"""
Track extraction.
Computes each track's byte range inside the source image and attaches a
zero-copy memoryview of that range to the track.
"""

from dataclasses import replace
from typing import List, Tuple

from errors import RangeError
from timecode import time_to_offset
from track_info import CueSheet, TrackInfo


def track_ranges(image_length: int, cue_sheet: CueSheet,
                 strict: bool = False) -> List[Tuple[int, int]]:
    """Return (start, length) for every track, in CUE order.

    Interior tracks end where the next track starts; the last track runs to
    the end of the image.
    """
    tracks = cue_sheet.tracks
    starts = [time_to_offset(track.starting_time, strict) for track in tracks]
    ranges = []

    for i, start in enumerate(starts):
        if i == len(starts) - 1:
            length = image_length - start
        else:
            length = starts[i + 1] - start

        track = tracks[i]
        if start < 0:
            raise RangeError(f"Track {track.track_number:02d} starts before the image ({start})")
        if length < 0:
            raise RangeError(
                f"Track {track.track_number:02d} has negative length {length} "
                f"(starts at {track.starting_time}, byte {start}, image is {image_length} bytes)")
        if start + length > image_length:
            raise RangeError(
                f"Track {track.track_number:02d} ends past the image "
                f"({start} + {length} > {image_length})")

        ranges.append((start, length))

    return ranges


def extract(image: bytes, cue_sheet: CueSheet, strict: bool = False) -> List[TrackInfo]:
    """Attach a view of the image to every track of the CUE sheet.

    Args:
        image: Whole source image; must outlive the returned tracks
        cue_sheet: Parsed CUE sheet
        strict: Reject out-of-range seconds/frames in timecodes
    """
    view = memoryview(image).toreadonly()
    extracted = []

    for track, (start, length) in zip(cue_sheet.tracks, track_ranges(len(view), cue_sheet, strict)):
        extracted.append(replace(track, data=view[start:start + length]))

    return extracted
