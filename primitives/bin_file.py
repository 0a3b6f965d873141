"""Section-indexed binary container reader.

Circom's .r1cs and .wtns files (and the iden3 "binfile" family generally)
share one layout:

    magic       4 bytes
    version     u32
    n_sections  u32
    repeated n_sections times:
        section_type  u32
        section_size  u64
        body          section_size bytes

All integers are little-endian. BinFileReader performs a single forward scan
over the section headers, recording where each body starts, and then lets the
caller seek into any section and read it field by field. Each section type may
appear at most once; a duplicate is rejected rather than silently shadowed.
"""

import io
import os
import struct
from pathlib import Path
from typing import BinaryIO, Dict, List, Optional, Tuple, Union

from primitives.errors import MalformedContainer, TruncatedSection

SECTION_HEADER_SIZE = 12  # u32 type + u64 size


class BinFileReader:
    """Reader over a seekable byte stream holding a sectioned container.

    Attributes:
        magic: The 4 magic bytes the container was validated against
        version: Container format version
        n_sections: Number of sections declared in the preamble
        sections: Map from section type to (body_offset, body_size)
        section_order: Section types in the order they appear in the stream
    """

    def __init__(self, stream: BinaryIO, magic: bytes, max_version: int) -> None:
        """Validate the preamble and index every section.

        Args:
            stream: Seekable binary stream positioned anywhere
            magic: Expected 4-byte magic
            max_version: Highest accepted format version

        Raises:
            MalformedContainer: Bad magic, unsupported version, duplicate
                section type, or stream ending before every section is scanned
        """
        self.stream = stream
        self.stream_size = stream.seek(0, os.SEEK_END)
        stream.seek(0)

        self.section_start: Optional[int] = None
        self.section_end: Optional[int] = None
        self.reading_section: Optional[int] = None

        found = stream.read(4)
        if found != magic:
            raise MalformedContainer(f"Invalid magic: expected {magic!r}, got {found!r}")
        self.magic = magic

        preamble = stream.read(8)
        if len(preamble) != 8:
            raise MalformedContainer("Container ends inside the preamble")
        self.version, self.n_sections = struct.unpack('<II', preamble)
        if self.version > max_version:
            raise MalformedContainer(
                f"Unsupported version: expected <={max_version}, got {self.version}"
            )

        self.sections: Dict[int, Tuple[int, int]] = {}
        self.section_order: List[int] = []

        for i in range(self.n_sections):
            header = stream.read(SECTION_HEADER_SIZE)
            if len(header) != SECTION_HEADER_SIZE:
                raise MalformedContainer(
                    f"Container ends after {i} of {self.n_sections} sections"
                )
            section_type, section_size = struct.unpack('<IQ', header)
            offset = stream.tell()
            if offset + section_size > self.stream_size:
                raise MalformedContainer(
                    f"Section {section_type} declares {section_size} bytes but only "
                    f"{self.stream_size - offset} remain"
                )
            if section_type in self.sections:
                raise MalformedContainer(f"Duplicate section type {section_type}")

            self.sections[section_type] = (offset, section_size)
            self.section_order.append(section_type)
            stream.seek(section_size, os.SEEK_CUR)

    @classmethod
    def from_file(cls, file_path: Union[str, Path], magic: bytes, max_version: int) -> 'BinFileReader':
        """Read a whole container file into memory and index it."""
        with open(file_path, 'rb') as f:
            data = f.read()
        return cls.from_bytes(data, magic, max_version)

    @classmethod
    def from_bytes(cls, data: bytes, magic: bytes, max_version: int) -> 'BinFileReader':
        """Index an in-memory container."""
        return cls(io.BytesIO(data), magic, max_version)

    # --- Section Access ---

    def section_size(self, section_id: int) -> int:
        """Declared body size of a section."""
        if section_id not in self.sections:
            raise MalformedContainer(f"Section {section_id} does not exist")
        return self.sections[section_id][1]

    def start_read_section(self, section_id: int) -> int:
        """Seek to the body of a section and bound further reads to it.

        Returns:
            Declared body size of the section

        Raises:
            MalformedContainer: If the section does not exist
        """
        if section_id not in self.sections:
            raise MalformedContainer(f"Section {section_id} does not exist")

        start, size = self.sections[section_id]
        self.stream.seek(start)
        self.section_start = start
        self.section_end = start + size
        self.reading_section = section_id
        return size

    def end_read_section(self, check: bool = True) -> None:
        """Finish reading the current section.

        Args:
            check: If True, verify exactly section_size bytes were consumed

        Raises:
            TruncatedSection: If the body was not consumed exactly
        """
        if check and self.reading_section is not None:
            pos = self.stream.tell()
            if pos != self.section_end:
                raise TruncatedSection(
                    f"Section {self.reading_section} size mismatch: read "
                    f"{pos - self.section_start} bytes, expected "
                    f"{self.section_end - self.section_start}"
                )

        self.reading_section = None
        self.section_start = None
        self.section_end = None

    # --- Primitive Reads ---

    def read_bytes(self, n: int) -> bytes:
        """Read exactly n raw bytes from the current position."""
        if self.section_end is not None and self.stream.tell() + n > self.section_end:
            raise TruncatedSection(
                f"Read of {n} bytes runs past the end of section {self.reading_section}"
            )
        data = self.stream.read(n)
        if len(data) != n:
            raise TruncatedSection(f"Expected {n} bytes, stream ended after {len(data)}")
        return data

    def read_u32_le(self) -> int:
        """Read uint32 little-endian."""
        return struct.unpack('<I', self.read_bytes(4))[0]

    def read_u64_le(self) -> int:
        """Read uint64 little-endian."""
        return struct.unpack('<Q', self.read_bytes(8))[0]


# --- Writing ---

def write_bin_file(magic: bytes, version: int, sections: List[Tuple[int, bytes]]) -> bytes:
    """Serialize sections into a container, in the given order."""
    out = bytearray(magic)
    out += struct.pack('<II', version, len(sections))
    for section_type, body in sections:
        out += struct.pack('<IQ', section_type, len(body))
        out += body
    return bytes(out)
