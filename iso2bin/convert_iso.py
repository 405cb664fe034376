#!/usr/bin/env python3
"""
ISO + CUE to BIN/CUE converter.
Splits a monolithic disc image into tracks using its CUE sheet and writes a
single-file BIN with a CUE sheet describing every track.
"""

import sys
import traceback

from converter import IsoConverter
from errors import ConversionError


def print_usage():
    print("Usage: python convert_iso.py <path/to/iso/file> OR <path/to/directory> [options]")
    print()
    print("Arguments:")
    print("  path                    - An .iso file with a same-named .cue beside it, or a")
    print("                            directory whose subfolders contain such files")
    print()
    print("Options:")
    print("  --config <file.yaml>    - Conversion settings (output_dir, output_prefix, ...)")
    print()
    print("Examples:")
    print("  python convert_iso.py game/game.iso")
    print("  python convert_iso.py discs/ --config iso2bin.yaml")


def main(argv=None):
    """Main entry point."""
    if argv is None:
        argv = sys.argv[1:]

    config_file = None
    args = []

    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == '--config' and i + 1 < len(argv):
            config_file = argv[i + 1]
            i += 1  # Skip next arg
        else:
            args.append(arg)
        i += 1

    if len(args) < 1:
        print_usage()
        return

    try:
        converter = IsoConverter(config_file)
    except ConversionError as e:
        print(f"Error: {e}")
        return

    try:
        converter.run(args[0])
    except Exception as e:
        print(f"\nError: {e}")
        print("\nFull traceback:")
        traceback.print_exc()


if __name__ == '__main__':
    main()
