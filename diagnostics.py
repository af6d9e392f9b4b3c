"""
Diagnostic formatting and reporting for the Lox scripting language
Renders errors with a source location, a code frame and ANSI colors
"""

import sys
import os
from enum import Enum
from typing import List, Optional, TextIO

from errors import Diagnostic, LoxRuntimeError, LoxError
from source_map import get_source_map, SourceFile, Position

class ColorMode(Enum):
    """Color output modes"""
    NEVER = "never"
    ALWAYS = "always"
    AUTO = "auto"

COLORS = {
    'reset': '\033[0m',
    'red': '\033[31m',
    'blue': '\033[34m',
    'cyan': '\033[36m',
    'bright_red': '\033[91m',
    'bright_blue': '\033[94m',
}

class DiagnosticFormatter:
    """Formats diagnostics for human-readable output"""

    def __init__(self, color_mode: ColorMode = ColorMode.AUTO, max_errors: int = 20):
        self.color_mode = color_mode
        self.max_errors = max_errors
        self.error_count = 0

    def should_use_colors(self, file: TextIO) -> bool:
        if self.color_mode == ColorMode.NEVER:
            return False
        if self.color_mode == ColorMode.ALWAYS:
            return True
        isatty = getattr(file, "isatty", None)
        return bool(isatty and isatty()) and os.getenv('NO_COLOR') is None

    def colorize(self, text: str, color: str, file: TextIO) -> str:
        if not self.should_use_colors(file):
            return text
        return f"{COLORS[color]}{text}{COLORS['reset']}"

    def format_error(self, error: LoxError, file: TextIO = sys.stderr) -> str:
        """Format an error, noting its phase for runtime failures"""
        text = self.format_diagnostic(error.diagnostic, file)
        if isinstance(error, LoxRuntimeError):
            text += self.colorize("   = note: raised while running the program", 'blue', file) + "\n"
        return text

    def format_diagnostic(self, diagnostic: Diagnostic, file: TextIO = sys.stderr) -> str:
        """Format a single diagnostic with code frame"""
        self.error_count += 1

        if self.error_count > self.max_errors:
            if self.error_count == self.max_errors + 1:
                return self.colorize("... (too many errors, stopping)", 'red', file) + "\n"
            return ""

        header = f"{diagnostic.severity.value.title()} [{diagnostic.code}]: {diagnostic.message}"
        lines = [self.colorize(header, 'bright_red', file)]

        span = diagnostic.primary_span()
        source_file = get_source_map().get_file(span.file_id) if span else None
        if span is not None and source_file is not None:
            start, end = source_file.span_to_positions(span)
            location = f"  --> {source_file.label}:{start}"
            lines.append(self.colorize(location, 'bright_blue', file))
            lines.extend(self._format_code_frame(diagnostic, source_file, start, end, file))
        else:
            lines.append(self.colorize(f"  --> line {diagnostic.line}", 'bright_blue', file))

        if diagnostic.help:
            lines.append(self.colorize(f"   = help: {diagnostic.help}", 'cyan', file))
        for note in diagnostic.notes:
            lines.append(self.colorize(f"   = note: {note}", 'blue', file))

        return "\n".join(lines) + "\n"

    def _format_code_frame(self, diagnostic: Diagnostic, source_file: SourceFile,
                           start: Position, end: Position, file: TextIO) -> List[str]:
        """The offending line(s) with the primary span underlined"""
        gutter_width = len(str(end.line))
        pipe = self.colorize('|', 'bright_blue', file)
        lines = [f"{' ' * gutter_width} {pipe}"]

        for line_num in range(start.line, end.line + 1):
            content = source_file.get_line(line_num)
            gutter = self.colorize(f"{line_num:>{gutter_width}}", 'bright_blue', file)
            lines.append(f"{gutter} {pipe} {content}")

        # Underline only the first line of a multi-line span
        first_line = source_file.get_line(start.line)
        start_col = start.column - 1
        if end.line == start.line:
            end_col = max(start_col + 1, end.column)
        else:
            end_col = max(start_col + 1, len(first_line))
        underline = ' ' * start_col + '^' * (end_col - start_col)

        label = self._primary_label(diagnostic)
        marker = self.colorize(underline, 'bright_red', file)
        if label:
            marker += " " + self.colorize(label, 'bright_red', file)
        lines.append(f"{' ' * gutter_width} {pipe} {marker}")
        return lines

    def _primary_label(self, diagnostic: Diagnostic) -> Optional[str]:
        for label in diagnostic.labels:
            if label.is_primary:
                return label.label
        return None

    def emit_error(self, error: LoxError, file: TextIO = sys.stderr):
        file.write(self.format_error(error, file))
        file.flush()

    def print_summary(self, file: TextIO = sys.stderr):
        """Print the error count for the batch just reported"""
        if self.error_count == 0:
            return

        error_text = f"{self.error_count} error{'s' if self.error_count != 1 else ''}"
        file.write("\n" + self.colorize(error_text, 'bright_red', file) + " generated\n")
        file.flush()

    def reset_counts(self):
        self.error_count = 0

_formatter = DiagnosticFormatter()

def get_formatter() -> DiagnosticFormatter:
    """Get the global diagnostic formatter"""
    return _formatter

def set_color_mode(mode: ColorMode):
    _formatter.color_mode = mode

def set_max_errors(max_errors: int):
    _formatter.max_errors = max_errors
