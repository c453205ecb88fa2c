"""
Slotasm Command-Line Interface
==============================

- **slotasm**: assemble a source file into a binary image
- **slotdump**: show the data entries and code slots of an image

Each tool is implemented as a Click-based CLI application.
"""

__all__ = ["slotasm", "slotdump"]
