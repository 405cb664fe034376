"""
Output generators for the converted image.
Writes the concatenated BIN file and the CUE sheet that describes it.
"""

import os
from pathlib import Path
from typing import List, Sequence

from errors import FormatError, ImageIOError, RangeError
from track_info import TrackInfo


def _replace_into(path: Path, write, atomic: bool = True):
    """Run write(file) against path, via a .tmp sibling when atomic."""
    target = path.with_suffix(path.suffix + '.tmp') if atomic else path
    try:
        with open(target, 'wb') as f:
            write(f)
            if atomic:
                f.flush()
                os.fsync(f.fileno())
        if atomic:
            # Atomic replace on Windows and POSIX.
            os.replace(target, path)
    except OSError as e:
        if atomic and target.exists():
            target.unlink()
        raise ImageIOError(f"Could not write {path}: {e}") from e


def write_image(tracks: Sequence[TrackInfo], output_stem, atomic: bool = True) -> Path:
    """Concatenate every track's data into {output_stem}.bin.

    Tracks are written back to back with no padding or framing; the CUE sheet
    is the only record of where one ends and the next begins.
    """
    for track in tracks:
        if track.data is None:
            raise RangeError(f"Track {track.track_number:02d} has not been extracted")

    bin_path = Path(f"{output_stem}.bin")

    def write(f):
        for track in tracks:
            f.write(track.data)

    _replace_into(bin_path, write, atomic)
    return bin_path


def render_descriptor(bin_name: str, tracks: Sequence[TrackInfo]) -> List[str]:
    """Build the CUE sheet lines for a single-file BIN."""
    lines = [f'FILE "{bin_name}" BINARY']
    for track in tracks:
        lines.append(f"  TRACK {track.track_number:02d} {track.track_type}")
        if track.pregap:
            lines.append(f"    PREGAP {track.pregap}")
        lines.append(f"    INDEX 01 {track.starting_time}")
    return lines


def write_descriptor(bin_path, tracks: Sequence[TrackInfo], atomic: bool = True) -> Path:
    """Write the CUE sheet for bin_path next to it and return its path."""
    bin_path = Path(bin_path)
    cue_path = bin_path.with_suffix('.cue')
    text = ''.join(line + '\n' for line in render_descriptor(bin_path.name, tracks))

    try:
        encoded = text.encode('ascii')
    except UnicodeEncodeError as e:
        raise FormatError(f"CUE sheet for {bin_path.name} is not plain ASCII: {e}") from e

    _replace_into(cue_path, lambda f: f.write(encoded), atomic)
    return cue_path
