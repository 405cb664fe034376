#!/usr/bin/env python3
"""End-to-end tests for the converter and command-line entry point."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest

from convert_iso import main
from converter import DEFAULT_CONFIG, IsoConverter, load_config
from cue_parser import parse
from errors import FormatError, MissingInputError, RangeError
from timecode import SECTOR_SIZE, time_to_offset
from test_disc_volume import build_iso, to_raw


GAME_CUE = """\
FILE "game.iso" BINARY
  TRACK 01 MODE2/2352
    INDEX 01 00:00:00
  TRACK 02 AUDIO
    PREGAP 00:02:00
    INDEX 01 00:00:40
"""


def make_disc(folder, name="game", cue=GAME_CUE, sectors=50):
    """Write <name>.iso and <name>.cue into folder and return the image path."""
    folder.mkdir(parents=True, exist_ok=True)
    image = b''.join(bytes([i % 251]) * SECTOR_SIZE for i in range(sectors))
    image_path = folder / f"{name}.iso"
    image_path.write_bytes(image)
    if cue is not None:
        (folder / f"{name}.cue").write_text(cue.replace("game.iso", f"{name}.iso"))
    return image_path


@pytest.fixture
def converter(tmp_path):
    return IsoConverter(config={
        'output_dir': str(tmp_path / 'out'),
        'report_volume_label': False,
        'track_type_from_mode': True,
    })


def test_convert_single_image(tmp_path, converter):
    image_path = make_disc(tmp_path / "disc")

    result = converter.convert(image_path)

    assert result.ok
    assert result.bin_path == tmp_path / "out" / "_game.bin"
    assert result.cue_path == tmp_path / "out" / "_game.cue"
    assert result.bin_path.read_bytes() == image_path.read_bytes()
    assert result.cue_path.read_text().splitlines() == [
        'FILE "_game.bin" BINARY',
        "  TRACK 01 MODE2/2352",
        "    INDEX 01 00:00:00",
        "  TRACK 02 AUDIO",
        "    PREGAP 00:02:00",
        "    INDEX 01 00:00:40",
    ]


def test_default_track_type_copies_second_token(tmp_path):
    converter = IsoConverter(config={'output_dir': str(tmp_path / 'out'), 'report_volume_label': False})

    result = converter.convert(make_disc(tmp_path / "disc"))

    lines = result.cue_path.read_text().splitlines()
    assert lines[1] == "  TRACK 01 01"
    assert lines[3] == "  TRACK 02 02"


def test_output_tracks_line_up_with_cue(tmp_path, converter):
    result = converter.convert(make_disc(tmp_path / "disc"))

    data = result.bin_path.read_bytes()
    tracks = parse(result.cue_path.read_text().splitlines())
    second = time_to_offset(tracks[1].starting_time)
    assert data[second:second + SECTOR_SIZE] == bytes([40]) * SECTOR_SIZE


def test_missing_cue_raises(tmp_path, converter):
    image_path = make_disc(tmp_path / "disc", cue=None)
    with pytest.raises(MissingInputError):
        converter.convert(image_path)


def test_missing_image_raises(tmp_path, converter):
    with pytest.raises(MissingInputError):
        converter.convert(tmp_path / "nothing.iso")


def test_out_of_order_cue_writes_nothing(tmp_path, converter):
    cue = "TRACK 01 AUDIO\nINDEX 01 00:00:30\nTRACK 02 AUDIO\nINDEX 01 00:00:10\n"
    image_path = make_disc(tmp_path / "disc", cue=cue)

    with pytest.raises(RangeError):
        converter.convert(image_path)
    assert not (tmp_path / "out" / "_game.bin").exists()
    assert not (tmp_path / "out" / "_game.cue").exists()


def test_malformed_timecode_raises(tmp_path, converter):
    image_path = make_disc(tmp_path / "disc", cue="TRACK 01 AUDIO\nINDEX 01 3:25\n")
    with pytest.raises(FormatError):
        converter.convert(image_path)


def test_cue_without_tracks_gives_empty_pair(tmp_path, converter):
    result = converter.convert(make_disc(tmp_path / "disc", cue='FILE "game.iso" BINARY\n'))

    assert result.bin_path.read_bytes() == b''
    assert result.cue_path.read_text() == 'FILE "_game.bin" BINARY\n'


def test_run_directory_continues_after_failure(tmp_path, converter, capsys):
    root = tmp_path / "discs"
    make_disc(root / "a", name="alpha")
    make_disc(root / "b", name="broken", cue=None)
    make_disc(root / "c", name="gamma")
    (root / "loose.iso").write_bytes(b'')  # Not in a subfolder, skipped

    results = converter.run(root)

    assert [r.source.name for r in results] == ["alpha.iso", "broken.iso", "gamma.iso"]
    assert [r.ok for r in results] == [True, False, True]
    assert isinstance(results[1].error, MissingInputError)
    assert (tmp_path / "out" / "_alpha.bin").exists()
    assert (tmp_path / "out" / "_gamma.cue").exists()

    output = capsys.readouterr().out
    assert "Processing:" in output
    assert "An error occurred: Associated CUE file not found" in output
    assert output.count("Conversion successful.") == 2


def test_run_invalid_path(tmp_path, converter, capsys):
    assert converter.run(tmp_path / "nowhere") == []
    assert "Invalid path provided." in capsys.readouterr().out


def test_volume_label_reported(tmp_path, capsys):
    data_track = to_raw(build_iso('CONVDISC'))
    audio_track = bytes(5 * SECTOR_SIZE)
    folder = tmp_path / "disc"
    folder.mkdir()
    (folder / "game.iso").write_bytes(data_track + audio_track)
    data_sectors = len(data_track) // SECTOR_SIZE
    seconds, frames = divmod(data_sectors, 75)
    (folder / "game.cue").write_text(
        'FILE "game.iso" BINARY\n'
        '  TRACK 01 MODE2/2352\n'
        '    INDEX 01 00:00:00\n'
        '  TRACK 02 AUDIO\n'
        f'    INDEX 01 00:{seconds:02d}:{frames:02d}\n')

    converter = IsoConverter(config={'output_dir': str(tmp_path / 'out')})
    result = converter.convert(folder / "game.iso")

    assert result.ok
    assert "Volume: CONVDISC" in capsys.readouterr().out


def test_volume_label_missing_filesystem_reported(tmp_path, capsys):
    converter = IsoConverter(config={'output_dir': str(tmp_path / 'out')})

    result = converter.convert(make_disc(tmp_path / "disc"))

    assert result.ok
    assert "Volume: (no ISO9660 filesystem in track 01)" in capsys.readouterr().out


def test_load_config(tmp_path):
    config_file = tmp_path / "iso2bin.yaml"
    config_file.write_text("output_prefix: conv_\nreset_pregap: true\n")

    config = load_config(str(config_file))
    assert config['output_prefix'] == 'conv_'
    assert config['reset_pregap'] is True
    assert config['image_pattern'] == DEFAULT_CONFIG['image_pattern']

    assert load_config() == DEFAULT_CONFIG
    with pytest.raises(MissingInputError):
        load_config(str(tmp_path / "missing.yaml"))


def test_config_changes_naming_and_pregap(tmp_path):
    cue = ("TRACK 01 AUDIO\nPREGAP 00:02:00\nINDEX 01 00:00:00\n"
           "TRACK 02 AUDIO\nINDEX 01 00:00:10\n")
    image_path = make_disc(tmp_path / "disc", cue=cue)
    converter = IsoConverter(config={
        'output_dir': str(tmp_path / 'out'),
        'output_prefix': 'conv_',
        'reset_pregap': True,
    })

    result = converter.convert(image_path)

    assert result.bin_path.name == "conv_game.bin"
    assert result.cue_path.read_text().count("PREGAP") == 1


def test_main_usage(capsys):
    main([])
    assert "Usage:" in capsys.readouterr().out


def test_main_converts_with_config(tmp_path, capsys):
    image_path = make_disc(tmp_path / "disc")
    config_file = tmp_path / "iso2bin.yaml"
    config_file.write_text(f"output_dir: {tmp_path / 'cli_out'}\nreport_volume_label: false\n")

    main([str(image_path), '--config', str(config_file)])

    assert (tmp_path / "cli_out" / "_game.bin").read_bytes() == image_path.read_bytes()
    assert "Conversion successful." in capsys.readouterr().out


def test_main_reports_missing_config(tmp_path, capsys):
    main([str(tmp_path), '--config', str(tmp_path / "missing.yaml")])
    assert "Config file not found" in capsys.readouterr().out
