"""
CUE sheet parser.

Only three directives matter for the conversion:
    TRACK nn TYPE      - starts a new track (numbered by order of appearance)
    PREGAP mm:ss:ff    - pregap for the next INDEX 01
    INDEX 01 mm:ss:ff  - start of the track's data; emits a TrackInfo

Everything else (FILE, REM, TITLE, INDEX 00, ...) is ignored.
"""

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from errors import FormatError, ImageIOError, MissingInputError, ParseError
from track_info import CueSheet, TrackInfo


@dataclass(frozen=True)
class ParserState:
    """Running state carried from one CUE line to the next."""
    track_number: int = 0
    track_type: str = ''
    pregap: Optional[str] = None


def _token(line: str, index: int) -> str:
    """Return a whitespace-separated token or raise FormatError."""
    tokens = line.split()
    if len(tokens) <= index:
        raise FormatError(f"Malformed CUE line '{line}': missing field {index + 1}")
    return tokens[index]


def _is_index01(line: str) -> bool:
    return line.split()[:2] == ['INDEX', '01']


def parse_line(state: ParserState, line: str, reset_pregap: bool = False,
               mode_type: bool = False) -> Tuple[ParserState, Optional[TrackInfo]]:
    """Apply one CUE line to the parser state.

    Returns the new state and the TrackInfo completed by this line, if any.
    With reset_pregap=False a pregap stays pending after it has been attached,
    so a later track without its own PREGAP inherits it.

    The track type is the second token of the TRACK line ('01' for
    'TRACK 01 AUDIO'); mode_type=True takes the third token ('AUDIO') instead.
    """
    line = line.strip()

    if line.startswith('TRACK'):
        return replace(state,
                       track_number=state.track_number + 1,
                       track_type=_token(line, 2 if mode_type else 1)), None

    if line.startswith('PREGAP'):
        return replace(state, pregap=_token(line, 1)), None

    if _is_index01(line):
        track = TrackInfo(
            track_number=state.track_number,
            track_type=state.track_type,
            starting_time=_token(line, 2),
            pregap=state.pregap,
        )
        if reset_pregap:
            state = replace(state, pregap=None)
        return state, track

    return state, None


def parse(lines: Iterable[str], reset_pregap: bool = False, mode_type: bool = False) -> CueSheet:
    """Parse CUE text lines into an ordered CueSheet."""
    state = ParserState()
    tracks: List[TrackInfo] = []

    for line in lines:
        state, track = parse_line(state, line, reset_pregap, mode_type)
        if track is not None:
            tracks.append(track)

    return CueSheet(tracks)


def read_cue_lines(cue_path, encoding: str = 'utf-8-sig') -> List[str]:
    """Read a CUE file as text lines."""
    cue_path = Path(cue_path)
    if not cue_path.is_file():
        raise MissingInputError(f"Associated CUE file not found: {cue_path}")

    try:
        return cue_path.read_text(encoding=encoding).splitlines()
    except (UnicodeDecodeError, LookupError) as e:
        raise ParseError(f"Could not read {cue_path.name} as {encoding} text: {e}") from e
    except OSError as e:
        raise ImageIOError(f"Could not read {cue_path}: {e}") from e
