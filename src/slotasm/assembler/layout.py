"""
Binary Layout
=============

Builds the final output image from the data table and the code segment,
and parses images back for inspection.

Image Format
------------
All multi-byte fields are big-endian.

```
Offset  Size  Description
------  ----  -----------
0       2     D: size of the data section in bytes
2       D     Data entries, ascending by offset, each:
                2   load offset
                2   payload length n
                n   payload bytes
2+D     4*N   Code segment: one 4-byte slot per instruction
```

D counts the 4 header bytes of each entry as well as its payload, so the
code segment always starts at 2+D. Entries are sorted by offset so that
assembling the same source twice yields identical images.
"""

from dataclasses import dataclass, field
import logging
import struct

from slotasm.assembler.data import DataEntry, DataTable
from slotasm.assembler.opcodes import SLOT_SIZE
from slotasm.errors import ImageFormatError


logger = logging.getLogger(__name__)

HEADER_SIZE = 2
ENTRY_HEADER_SIZE = 4
MAX_SECTION_SIZE = 0xFFFF


@dataclass
class BinaryImage:
    """
    An assembled program image.

    Attributes:
        data: Data entries, in the order they are laid out
        code: Code segment bytes (a multiple of SLOT_SIZE)
    """
    data: list[DataEntry] = field(default_factory=list)
    code: bytes = b""

    @classmethod
    def from_tables(cls, data: DataTable, code: bytes) -> "BinaryImage":
        """Create an image from a data table and encoded code."""
        return cls(data=list(data), code=bytes(code))

    @property
    def data_size(self) -> int:
        """Size of the data section (the D header field)."""
        return sum(ENTRY_HEADER_SIZE + len(entry.payload) for entry in self.data)

    @property
    def slot_count(self) -> int:
        return len(self.code) // SLOT_SIZE

    def slots(self) -> list[bytes]:
        """The code segment split into instruction slots."""
        return [
            self.code[i:i + SLOT_SIZE]
            for i in range(0, len(self.code), SLOT_SIZE)
        ]

    def to_bytes(self) -> bytes:
        """
        Serialize the image.

        Raises:
            ImageFormatError: If the data section does not fit its header
        """
        data_size = self.data_size
        if data_size > MAX_SECTION_SIZE:
            raise ImageFormatError(
                f"data section of {data_size} bytes exceeds {MAX_SECTION_SIZE} bytes"
            )

        result = bytearray()
        result.extend(struct.pack(">H", data_size))
        for entry in sorted(self.data, key=lambda e: e.offset):
            result.extend(struct.pack(">HH", entry.offset, len(entry.payload)))
            result.extend(entry.payload)
        result.extend(self.code)

        logger.debug(
            f"Image: {len(self.data)} data entries ({data_size} bytes), "
            f"{self.slot_count} slots"
        )
        return bytes(result)

    @classmethod
    def from_bytes(cls, data: bytes) -> "BinaryImage":
        """
        Parse an image.

        Raises:
            ImageFormatError: If the image is truncated or inconsistent
        """
        if len(data) < HEADER_SIZE:
            raise ImageFormatError(f"image too short: {len(data)} bytes")

        (data_size,) = struct.unpack_from(">H", data, 0)
        end = HEADER_SIZE + data_size
        if end > len(data):
            raise ImageFormatError(
                f"image truncated: data section of {data_size} bytes, "
                f"only {len(data) - HEADER_SIZE} available"
            )

        entries = []
        pos = HEADER_SIZE
        while pos < end:
            if pos + ENTRY_HEADER_SIZE > end:
                raise ImageFormatError(f"truncated data entry header at offset {pos}")
            offset, length = struct.unpack_from(">HH", data, pos)
            pos += ENTRY_HEADER_SIZE
            if pos + length > end:
                raise ImageFormatError(
                    f"data entry at 0x{offset:04X} overruns the data section"
                )
            entries.append(DataEntry(offset, bytes(data[pos:pos + length])))
            pos += length

        code = bytes(data[end:])
        if len(code) % SLOT_SIZE:
            raise ImageFormatError(
                f"code segment of {len(code)} bytes is not a whole number of slots"
            )
        return cls(data=entries, code=code)


def build_image(data: DataTable, code: bytes) -> bytes:
    """Convenience function: lay out the final image bytes."""
    return BinaryImage.from_tables(data, code).to_bytes()
