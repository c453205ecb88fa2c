"""
Slot Disassembler
=================

Decodes binary images back into readable form. Every instruction occupies
one 4-byte slot, so decoding is a straight walk over the code segment:
byte 0 is looked up in the instruction set, bytes 1..3 are shown raw
since the slot does not record which operands are registers and which
are 16-bit values.

Example output:

```
; Data entries: 1 (7 bytes)
$8000: 48 69 0A                  "Hi."

; Code: 3 slots
$0000: 07 01 00 05  movi
$0004: 0B 00 08 00  jmpi         ; loop
$0008: 14 01 00 00  inc
```
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from slotasm.assembler.layout import BinaryImage
from slotasm.assembler.opcodes import (
    DEFAULT_INSTRUCTION_SET,
    IMMEDIATE_SUFFIX,
    SLOT_SIZE,
    InstructionSet,
)


UNKNOWN_MNEMONIC = "???"


@dataclass
class DecodedSlot:
    """
    One decoded instruction slot.

    Attributes:
        address: Address of the slot in the code segment
        opcode: Byte 0 of the slot
        mnemonic: Instruction name, or "???" for an unknown opcode
        raw_bytes: All four slot bytes
        comment: Optional annotation (e.g. a label name)
    """
    address: int
    opcode: int
    mnemonic: str
    raw_bytes: bytes
    comment: str = ""

    @property
    def is_known(self) -> bool:
        return self.mnemonic != UNKNOWN_MNEMONIC

    def __str__(self) -> str:
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes)
        if self.comment:
            return f"${self.address:04X}: {hex_bytes}  {self.mnemonic:<12} ; {self.comment}"
        return f"${self.address:04X}: {hex_bytes}  {self.mnemonic}"


class SlotDisassembler:
    """
    Disassembler for slot-encoded code.

    Attributes:
        isa: Instruction set used for the opcode lookup
        symbol_table: Optional address -> name mapping; immediate-form
                      slots whose trailing 16-bit value matches an entry
                      are annotated with the name
    """

    def __init__(self, isa: InstructionSet = DEFAULT_INSTRUCTION_SET,
                 symbol_table: Optional[Dict[int, str]] = None):
        self.isa = isa
        self.symbol_table = dict(symbol_table or {})

    def disassemble_one(self, slot: bytes, address: int) -> DecodedSlot:
        """Decode a single slot."""
        opcode = slot[0]
        info = self.isa.by_opcode(opcode)
        mnemonic = info.mnemonic if info else UNKNOWN_MNEMONIC
        return DecodedSlot(
            address=address,
            opcode=opcode,
            mnemonic=mnemonic,
            raw_bytes=bytes(slot),
            comment=self._annotate(mnemonic, slot),
        )

    def _annotate(self, mnemonic: str, slot: bytes) -> str:
        if not self.symbol_table or not mnemonic.endswith(IMMEDIATE_SUFFIX):
            return ""
        # The 16-bit value follows a register byte or starts right after the opcode
        for position in (2, 1):
            value = int.from_bytes(slot[position:position + 2], "big")
            if value in self.symbol_table:
                return self.symbol_table[value]
        return ""

    def disassemble(self, code: bytes, start_address: int = 0,
                    count: Optional[int] = None) -> List[DecodedSlot]:
        """
        Decode a code segment.

        A trailing partial slot is ignored.
        """
        result = []
        for offset in range(0, len(code) - SLOT_SIZE + 1, SLOT_SIZE):
            if count is not None and len(result) >= count:
                break
            result.append(
                self.disassemble_one(code[offset:offset + SLOT_SIZE], start_address + offset)
            )
        return result

    def disassemble_to_text(self, code: bytes, start_address: int = 0,
                            count: Optional[int] = None) -> str:
        """Decode a code segment into a multi-line listing."""
        return "\n".join(str(slot) for slot in self.disassemble(code, start_address, count))

    def dump_image(self, image: bytes) -> str:
        """
        Describe a complete binary image: its data entries and code slots.

        Raises:
            ImageFormatError: If the image cannot be parsed
        """
        parsed = BinaryImage.from_bytes(image)
        lines = [f"; Data entries: {len(parsed.data)} ({parsed.data_size} bytes)"]
        for entry in parsed.data:
            hex_bytes = " ".join(f"{b:02X}" for b in entry.payload[:8])
            if len(entry.payload) > 8:
                hex_bytes += " ..."
            text = "".join(chr(b) if 0x20 <= b < 0x7F else "." for b in entry.payload[:16])
            lines.append(f"${entry.offset:04X}: {hex_bytes:<28} \"{text}\"")

        lines.append("")
        lines.append(f"; Code: {parsed.slot_count} slots")
        slots = self.disassemble(parsed.code)
        lines.extend(str(slot) for slot in slots)
        return "\n".join(lines) + "\n"
