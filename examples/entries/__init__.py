"""
Entries Example

The smallest useful pair of commanders:
- AppendEntry appends to a list, and pops it back off when undone
- AppendEntries runs AppendEntry once or twice plus an inline step
"""

from .commanders import AppendEntries, AppendEntry

__all__ = ["AppendEntries", "AppendEntry"]
