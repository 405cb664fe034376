"""
ISO9660 volume label reader for data tracks.
Reads the volume label of a disc image with pycdlib, converting raw
2352-byte sectors to 2048-byte ISO sectors on the fly when needed.
"""

import io
from typing import Optional

import pycdlib.pycdlib as pycdlib_module
from pycdlib.pycdlibexception import PyCdlibException

from timecode import SECTOR_SIZE


ISO_SECTOR_SIZE = 2048
SYNC_PATTERN = b'\x00' + b'\xff' * 10 + b'\x00'
PVD_SECTOR = 16  # Primary volume descriptor lives at logical sector 16
ISO_STANDARD_ID = b'CD001'

# Bytes before user data in a raw sector: sync + header (+ subheader for mode 2)
MODE1_HEADER_SIZE = 16
MODE2_HEADER_SIZE = 24


def detect_sector_size(data) -> int:
    """Heuristically detect sector size (2048 or 2352 bytes)."""
    if bytes(data[:len(SYNC_PATTERN)]) == SYNC_PATTERN:
        return SECTOR_SIZE  # Raw sectors start with the sync pattern
    if len(data) % ISO_SECTOR_SIZE == 0:
        return ISO_SECTOR_SIZE
    return SECTOR_SIZE


def raw_header_size(data) -> int:
    """Header size of raw sectors, from the mode byte of the PVD sector (or sector 0)."""
    sector = PVD_SECTOR if len(data) >= (PVD_SECTOR + 1) * SECTOR_SIZE else 0
    mode = data[sector * SECTOR_SIZE + 15] if len(data) > sector * SECTOR_SIZE + 15 else 2
    return MODE1_HEADER_SIZE if mode == 1 else MODE2_HEADER_SIZE


class RawSectorReader(io.BufferedIOBase):
    """File-like view that converts 2352-byte raw CD sectors to 2048-byte ISO on-the-fly."""

    def __init__(self, data, header_size: int = MODE2_HEADER_SIZE):
        self.data = memoryview(data)
        self.sector_size = SECTOR_SIZE
        self.data_size = ISO_SECTOR_SIZE
        self.header_size = header_size

        # Logical size as if it were a 2048-byte ISO
        self.num_sectors = len(self.data) // self.sector_size
        self.logical_size = self.num_sectors * self.data_size
        self.current_pos = 0

    def read(self, size: Optional[int] = -1) -> bytes:  # type: ignore[override]
        """Read and translate data from raw CD format."""
        if size is None or size < 0:
            size = self.logical_size - self.current_pos

        if size <= 0 or self.current_pos >= self.logical_size:
            return b''

        size = min(size, self.logical_size - self.current_pos)
        result = bytearray()

        while len(result) < size:
            sector_num = self.current_pos // self.data_size
            offset_in_sector = self.current_pos % self.data_size
            chunk = min(self.data_size - offset_in_sector, size - len(result))

            raw_offset = sector_num * self.sector_size + self.header_size + offset_in_sector
            result.extend(self.data[raw_offset:raw_offset + chunk])
            self.current_pos += chunk

        return bytes(result)

    def seek(self, offset: int, whence: int = 0) -> int:
        """Seek to a position in the logical file."""
        if whence == io.SEEK_SET:
            self.current_pos = offset
        elif whence == io.SEEK_CUR:
            self.current_pos += offset
        elif whence == io.SEEK_END:
            self.current_pos = self.logical_size + offset

        self.current_pos = max(0, min(self.current_pos, self.logical_size))
        return self.current_pos

    def tell(self) -> int:
        return self.current_pos

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return True


def read_volume_label(data) -> Optional[str]:
    """Return the ISO9660 volume identifier of a data track, or None.

    None means the data does not hold an ISO9660 filesystem (audio track,
    unformatted image, ...).
    """
    if detect_sector_size(data) == SECTOR_SIZE:
        fp = RawSectorReader(data, raw_header_size(data))
    else:
        fp = io.BytesIO(bytes(data))

    if fp.seek(0, io.SEEK_END) < (PVD_SECTOR + 1) * ISO_SECTOR_SIZE:
        return None  # Too short to hold a volume descriptor
    fp.seek(PVD_SECTOR * ISO_SECTOR_SIZE)
    if fp.read(6)[1:] != ISO_STANDARD_ID:
        return None
    fp.seek(0)

    iso = pycdlib_module.PyCdlib()
    try:
        iso.open_fp(fp)
    except PyCdlibException:
        return None

    try:
        label = iso.pvd.volume_identifier
        return label.decode('ascii', errors='ignore').strip() or None
    finally:
        iso.close()
