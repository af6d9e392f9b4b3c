"""
Source tracking for the Lox scripting language
Each chunk of source text handed to the scanner is registered here so that
spans on tokens and errors can be turned back into line/column positions.
"""

from bisect import bisect_right
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

@dataclass(frozen=True)
class Span:
    """Half-open character range [start, end) inside one registered source"""
    file_id: int
    start: int
    end: int

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Invalid span: start ({self.start}) > end ({self.end})")

    def to(self, other: Optional['Span']) -> 'Span':
        """Span covering this span through the end of another"""
        if other is None or other.file_id != self.file_id:
            return self
        return Span(self.file_id, min(self.start, other.start), max(self.end, other.end))

@dataclass(frozen=True)
class Position:
    """1-indexed line/column"""
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"

class SourceFile:
    """One chunk of source text plus the offsets at which its lines begin"""

    def __init__(self, file_id: int, label: str, content: str):
        self.file_id = file_id
        self.label = label
        self.content = content
        self.line_starts: List[int] = [0]
        for i, char in enumerate(content):
            if char == '\n':
                self.line_starts.append(i + 1)

    def offset_to_position(self, offset: int) -> Position:
        if offset < 0 or offset > len(self.content):
            raise ValueError(f"Offset {offset} out of bounds for {self.label}")
        line = bisect_right(self.line_starts, offset)
        return Position(line, offset - self.line_starts[line - 1] + 1)

    def span_to_positions(self, span: Span) -> Tuple[Position, Position]:
        if span.file_id != self.file_id:
            raise ValueError(f"Span file_id {span.file_id} doesn't match file {self.file_id}")
        start = self.offset_to_position(span.start)
        end = self.offset_to_position(max(span.start, span.end - 1))
        return start, end

    def get_line(self, line: int) -> str:
        """Text of a 1-indexed line without its newline"""
        if line < 1 or line > len(self.line_starts):
            raise ValueError(f"Line {line} out of bounds")
        start = self.line_starts[line - 1]
        if line < len(self.line_starts):
            end = self.line_starts[line] - 1
        else:
            end = len(self.content)
        return self.content[start:end].rstrip('\r')

# Registered chunks kept before the oldest is dropped
MAX_SOURCES = 256

class SourceMap:
    """Registry of the source chunks scanned most recently in this process"""

    def __init__(self, max_sources: int = MAX_SOURCES):
        self.files: Dict[int, SourceFile] = {}
        self.next_id = 1
        self.max_sources = max_sources

    def add_source(self, label: str, content: str) -> int:
        """Register a chunk and return its id. REPL lines share a label, so
        every call gets a fresh id."""
        file_id = self.next_id
        self.next_id += 1
        self.files[file_id] = SourceFile(file_id, label, content)
        while len(self.files) > self.max_sources:
            del self.files[next(iter(self.files))]
        return file_id

    def get_file(self, file_id: int) -> Optional[SourceFile]:
        return self.files.get(file_id)

    def start_position(self, span: Span) -> Optional[Position]:
        """Where a span begins, or None once its source has been dropped"""
        source_file = self.get_file(span.file_id)
        if source_file is None:
            return None
        return source_file.offset_to_position(span.start)

_source_map = SourceMap()

def get_source_map() -> SourceMap:
    return _source_map

def reset_source_map():
    """Drop every registered source (used between test cases)"""
    global _source_map
    _source_map = SourceMap()
