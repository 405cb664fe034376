"""
Track records shared by the parser, extractor and output generators.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class TrackInfo:
    """One physical track on the disc."""
    track_number: int  # 1-based, in parse order
    track_type: str  # Copied verbatim, e.g. MODE2/2352 or AUDIO
    starting_time: str  # INDEX 01 timecode (mm:ss:ff)
    pregap: Optional[str] = None  # PREGAP timecode, only when the CUE declared one
    data: Optional[memoryview] = field(default=None, compare=False, repr=False)  # View into the source image

    @property
    def length(self) -> int:
        """Byte length of the extracted view (0 before extraction)."""
        return self.data.nbytes if self.data is not None else 0

    def is_extracted(self) -> bool:
        return self.data is not None


@dataclass
class CueSheet:
    """Ordered tracks of a single-FILE CUE sheet. Order is disc order."""
    tracks: List[TrackInfo] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.tracks)

    def __iter__(self):
        return iter(self.tracks)

    def __getitem__(self, index):
        return self.tracks[index]
