"""
Conversion orchestrator.
Handles config loading, image/CUE lookup, track extraction and batch processing.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from cue_parser import parse, read_cue_lines
from disc_volume import read_volume_label
from errors import ConversionError, ImageIOError, MissingInputError
from output_generators import write_descriptor, write_image
from timecode import SECTOR_SIZE
from track_info import TrackInfo
from track_extractor import extract


DEFAULT_CONFIG = {
    'output_dir': '.',
    'output_prefix': '_',
    'image_pattern': '*.iso',
    'cue_encoding': 'utf-8-sig',
    'strict_timecodes': False,
    'reset_pregap': False,
    'track_type_from_mode': False,
    'atomic_write': True,
    'report_volume_label': True,
}


@dataclass
class ConversionResult:
    """Outcome of converting one image."""
    source: Path
    bin_path: Optional[Path] = None
    cue_path: Optional[Path] = None
    error: Optional[ConversionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def load_config(config_path: Optional[str] = None) -> Dict:
    """Load a YAML config file on top of the defaults."""
    config = dict(DEFAULT_CONFIG)
    if config_path is None:
        return config

    path = Path(config_path)
    if not path.is_file():
        raise MissingInputError(f"Config file not found: {path}")

    try:
        with open(path, 'r') as f:
            loaded = yaml.safe_load(f) or {}
    except OSError as e:
        raise ImageIOError(f"Could not read config {path}: {e}") from e

    if not isinstance(loaded, dict):
        raise ConversionError(f"Config {path} must be a mapping, got {type(loaded).__name__}")

    config.update(loaded)
    return config


class IsoConverter:
    """Converts monolithic ISO + CUE images into single-file BIN/CUE pairs."""

    def __init__(self, config_path: Optional[str] = None, config: Optional[Dict] = None):
        """Initialize from an optional YAML config file, or an already-loaded dict."""
        if config is not None:
            self.config = dict(DEFAULT_CONFIG)
            self.config.update(config)
        else:
            self.config = load_config(config_path)

        self.output_dir = Path(self.config.get('output_dir', '.'))
        self.output_prefix = self.config.get('output_prefix', '_')
        self.image_pattern = self.config.get('image_pattern', '*.iso')
        self.cue_encoding = self.config.get('cue_encoding', 'utf-8-sig')
        self.strict_timecodes = bool(self.config.get('strict_timecodes', False))
        self.reset_pregap = bool(self.config.get('reset_pregap', False))
        self.track_type_from_mode = bool(self.config.get('track_type_from_mode', False))
        self.atomic_write = bool(self.config.get('atomic_write', True))
        self.report_volume_label = bool(self.config.get('report_volume_label', True))

    @staticmethod
    def cue_path_for(image_path: Path) -> Path:
        """Sibling CUE sheet with the same stem as the image."""
        return image_path.parent / f"{image_path.stem}.cue"

    def output_stem_for(self, image_path: Path) -> Path:
        return self.output_dir / f"{self.output_prefix}{image_path.stem}"

    def _read_image(self, image_path: Path) -> bytes:
        try:
            return image_path.read_bytes()
        except OSError as e:
            raise ImageIOError(f"Could not read {image_path}: {e}") from e

    def _print_tracks(self, tracks: List[TrackInfo]):
        for track in tracks:
            pregap = f"  pregap {track.pregap}" if track.pregap else ""
            print(f"  Track {track.track_number:02d} {track.track_type:<12s} "
                  f"start {track.starting_time}  sectors {track.length // SECTOR_SIZE}{pregap}")

    def _print_volume_label(self, tracks: List[TrackInfo]):
        """Print the ISO9660 label of the first track, if it holds one."""
        if not tracks:
            return
        data_track = tracks[0]  # Mixed-mode discs keep the data track first
        label = read_volume_label(data_track.data)
        if label:
            print(f"  Volume: {label}")
        else:
            print(f"  Volume: (no ISO9660 filesystem in track {data_track.track_number:02d})")

    def convert(self, image_path) -> ConversionResult:
        """Convert a single image. Raises ConversionError on the first failure."""
        image_path = Path(image_path)
        if not image_path.is_file():
            raise MissingInputError(f"Invalid ISO file path: {image_path}")

        cue_path = self.cue_path_for(image_path)
        if not cue_path.is_file():
            raise MissingInputError(f"Associated CUE file not found: {cue_path}")

        image = self._read_image(image_path)
        cue_sheet = parse(read_cue_lines(cue_path, self.cue_encoding), reset_pregap=self.reset_pregap,
                          mode_type=self.track_type_from_mode)
        tracks = extract(image, cue_sheet, strict=self.strict_timecodes)

        self._print_tracks(tracks)
        if self.report_volume_label:
            self._print_volume_label(tracks)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ImageIOError(f"Could not create output directory {self.output_dir}: {e}") from e

        bin_path = write_image(tracks, self.output_stem_for(image_path), atomic=self.atomic_write)
        new_cue_path = write_descriptor(bin_path, tracks, atomic=self.atomic_write)

        return ConversionResult(source=image_path, bin_path=bin_path, cue_path=new_cue_path)

    def find_images(self, directory: Path) -> List[Path]:
        """Images in the immediate subfolders of a directory, sorted."""
        images = []
        for subfolder in sorted(p for p in directory.iterdir() if p.is_dir()):
            images.extend(sorted(p for p in subfolder.glob(self.image_pattern) if p.is_file()))
        return images

    def run(self, input_path) -> List[ConversionResult]:
        """Convert one image or every image below a directory.

        This is the only place conversion errors are reported; a failure moves
        on to the next image.
        """
        input_path = Path(input_path)

        if input_path.is_file():
            images = [input_path]
        elif input_path.is_dir():
            images = self.find_images(input_path)
            if not images:
                print(f"No {self.image_pattern} files found in subfolders of {input_path}")
        else:
            print("Invalid path provided.")
            return []

        results = []
        for image_path in images:
            print(f"Processing: {image_path}")
            try:
                result = self.convert(image_path)
                print(f"Conversion successful. New BIN File: {result.bin_path}, "
                      f"New CUE File: {result.cue_path}")
            except ConversionError as e:
                print(f"  ERROR: An error occurred: {e}")
                result = ConversionResult(source=image_path, error=e)
            results.append(result)

        return results
