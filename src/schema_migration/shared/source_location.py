"""
Source Location

Points at a span inside one legacy model or mixin file.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SourceLocation:
    """
    Location of a syntax node inside a source file.

    Lines and columns are 1-based (editor convention). ``start``/``end`` are
    byte offsets into the UTF-8 encoded source, as reported by tree-sitter.
    """
    file: str
    line: int
    column: int
    start: int = 0
    end: int = 0
    end_line: int = 0
    end_column: int = 0

    @classmethod
    def from_node(cls, file: str, node) -> "SourceLocation":
        """Build a location from a tree-sitter node (points are 0-based)."""
        start_row, start_col = node.start_point
        end_row, end_col = node.end_point
        return cls(
            file=file,
            line=start_row + 1,
            column=start_col + 1,
            start=node.start_byte,
            end=node.end_byte,
            end_line=end_row + 1,
            end_column=end_col + 1,
        )

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"
