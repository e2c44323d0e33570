#!/usr/bin/env python3
# SPDX-FileCopyrightText: 2025 Blackcat Informatics® Inc.
# SPDX-License-Identifier: MIT

"""Update, append to, or insert a key/value pair inside a property file."""

from __future__ import annotations

import argparse
import enum
import os
import re
import stat
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

PREFIX = "[update-property]"
DELIMITER_ENV = "UPDATE_PROPERTY_DELIMITER"
DEFAULT_DELIMITER = "="

# Undecodable bytes survive a read/write round trip as lone surrogates.
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"


class PropertyUpdateError(Exception):
    """Base class for property update failures."""


class KeyNotFoundError(PropertyUpdateError, KeyError):
    def __init__(self, key: str, path: Optional[Path] = None) -> None:
        self.key = key
        self.path = path
        super().__init__(key)

    def __str__(self) -> str:
        where = f" in {self.path}" if self.path else ""
        return f"key '{self.key}' not found{where} (use -f to append it)"


class CombineMode(enum.Enum):
    REPLACE = "replace"
    APPEND = "append"
    PREPEND = "prepend"

    @classmethod
    def from_flags(cls, append: bool = False, prepend: bool = False) -> "CombineMode":
        # -p wins over -a when both are given
        if prepend:
            return cls.PREPEND
        if append:
            return cls.APPEND
        return cls.REPLACE


@dataclass(frozen=True)
class UpdateRequest:
    key: str
    value: str
    delimiter: str = "="
    mode: CombineMode = CombineMode.REPLACE
    quote: bool = False
    force: bool = False
    echo: bool = False

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("key must not be empty")
        if len(self.delimiter) != 1:
            raise ValueError(f"delimiter must be a single character, got {self.delimiter!r}")
        for name in ("key", "value", "delimiter"):
            if any(c in getattr(self, name) for c in "\r\n"):
                raise ValueError(f"{name} must not contain line breaks")


def combine(old: str, new: str, mode: CombineMode) -> str:
    if mode is CombineMode.APPEND:
        return old + new
    if mode is CombineMode.PREPEND:
        return new + old
    return new


def key_pattern(key: str, delimiter: str) -> "re.Pattern[str]":
    """Anchored pattern capturing the value of ``key``; both parts match literally."""
    return re.compile(f"^{re.escape(key)}{re.escape(delimiter)}(.*)$")


def unquote(value: str) -> str:
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


def format_entry(request: UpdateRequest, value: str) -> str:
    if request.quote:
        value = f'"{value}"'
    return f"{request.key}{request.delimiter}{value}"


def rewrite_lines(
    lines: Sequence[str], request: UpdateRequest, path: Optional[Path] = None
) -> Tuple[List[str], str]:
    """Return ``(new_lines, written_line)`` for ``request`` applied to ``lines``.

    Only the first matching line is rewritten. Every other line, including
    later duplicates of the key, is copied through unchanged and in order.
    When nothing matches the entry is appended if ``request.force`` is set,
    otherwise :class:`KeyNotFoundError` is raised.
    """
    pattern = key_pattern(request.key, request.delimiter)
    output: List[str] = []
    written: Optional[str] = None

    for line in lines:
        match = pattern.match(line) if written is None else None
        if match is None:
            output.append(line)
            continue
        old = match.group(1)
        if request.quote:
            old = unquote(old)
        written = format_entry(request, combine(old, request.value, request.mode))
        output.append(written)

    if written is None:
        if not request.force:
            raise KeyNotFoundError(request.key, path)
        written = format_entry(request, combine("", request.value, request.mode))
        output.append(written)

    return output, written


def read_lines(path: Path) -> List[str]:
    """Split on line endings only; form feeds and other separators stay in the line."""
    with path.open(encoding=ENCODING, errors=ENCODING_ERRORS, newline=None) as fh:
        text = fh.read()
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def sync_directory(directory: Path) -> None:
    if os.name != "posix":
        return
    fd = os.open(directory, os.O_RDONLY)
    try:
        os.fsync(fd)
    finally:
        os.close(fd)


def write_atomic(path: Path, lines: Sequence[str]) -> None:
    """Replace ``path`` with ``lines`` via a temporary file in the same directory."""
    content = "\n".join(lines) + "\n"
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding=ENCODING, errors=ENCODING_ERRORS, newline="") as fh:
            fh.write(content)
            fh.flush()
            os.fsync(fh.fileno())
        os.chmod(tmp_path, stat.S_IMODE(path.stat().st_mode))
        os.replace(tmp_path, path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise
    sync_directory(path.parent)


def update_property(file_path: str | Path, request: UpdateRequest) -> str:
    path = Path(file_path)
    if not path.is_file():
        raise FileNotFoundError(f"property file not found: {file_path}")

    lines, written = rewrite_lines(read_lines(path), request, path)
    write_atomic(path, lines)
    return written


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{PREFIX} {message}\n")


def split_options(argv: Sequence[str]) -> List[str]:
    """Move everything from the first positional onwards behind ``--``.

    Options must precede ``<file> <key> <value>``, so a value such as
    ``-Xmx512m`` is never mistaken for a flag.
    """
    remaining = list(argv)
    options: List[str] = []
    while remaining:
        token = remaining[0]
        if token == "--":
            remaining.pop(0)
            break
        if not token.startswith("-") or token == "-":
            break
        options.append(remaining.pop(0))
        # -d takes the next token when it ends a short-option cluster
        if not token.startswith("--") and token.endswith("d") and remaining:
            options.append(remaining.pop(0))
    return options + ["--"] + remaining


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = _Parser(prog="update_property", description=__doc__)
    default_delimiter = os.environ.get(DELIMITER_ENV, DEFAULT_DELIMITER)
    parser.add_argument("-d", dest="delimiter", default=default_delimiter, help="Key/value delimiter (default %(default)r)")
    parser.add_argument("-a", dest="append", action="store_true", help="Append value to the existing value")
    parser.add_argument("-p", dest="prepend", action="store_true", help="Prepend value to the existing value (beats -a)")
    parser.add_argument("-e", dest="echo", action="store_true", help="Print the resulting line to stdout")
    parser.add_argument("-f", dest="force", action="store_true", help="Append the pair when the key is missing")
    parser.add_argument("-q", dest="quote", action="store_true", help="Wrap the written value in double quotes")
    parser.add_argument("file", help="Property file to update")
    parser.add_argument("key", help="Key to update")
    parser.add_argument("value", help="New value")
    args = parser.parse_args(split_options(argv))

    try:
        args.request = UpdateRequest(
            key=args.key,
            value=args.value,
            delimiter=args.delimiter,
            mode=CombineMode.from_flags(args.append, args.prepend),
            quote=args.quote,
            force=args.force,
            echo=args.echo,
        )
    except ValueError as exc:
        parser.error(str(exc))
    return args


def echo_line(line: str) -> None:
    data = (line + "\n").encode(ENCODING, ENCODING_ERRORS)
    buffer = getattr(sys.stdout, "buffer", None)
    if buffer is None:
        sys.stdout.write(data.decode(ENCODING, "replace"))
        return
    sys.stdout.flush()
    buffer.write(data)
    buffer.flush()


def main(argv: Sequence[str]) -> int:
    args = parse_args(argv)
    request: UpdateRequest = args.request
    try:
        written = update_property(args.file, request)
    except (PropertyUpdateError, OSError, UnicodeError) as exc:
        print(f"{PREFIX} {exc}", file=sys.stderr)
        return 1

    if request.echo:
        echo_line(written)
    return 0


def run() -> int:
    return main(sys.argv[1:])


if __name__ == "__main__":  # pragma: no cover - exercised via callers
    sys.exit(run())
