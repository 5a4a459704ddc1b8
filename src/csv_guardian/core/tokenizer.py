"""Quote and escape aware splitting of a single delimited line."""

from __future__ import annotations

from typing import List

from .options import CsvOptions

DEFAULT_OPTIONS = CsvOptions()


def tokenize_line(line: str, options: CsvOptions = DEFAULT_OPTIONS) -> List[str]:
    """Split one line into raw field strings.

    A quote toggles quoted mode unless it directly follows the escape
    character, in which case it is kept as a literal and the escape character
    is dropped. Delimiters inside quotes are literal. An unterminated quote is
    closed implicitly at end of line. An empty line yields no fields.
    """
    line = line.rstrip("\r\n")
    if not line:
        return []

    delimiter = options.delimiter
    quote = options.quote_char
    escape = options.escape_char

    fields: List[str] = []
    buffer: List[str] = []
    in_quotes = False
    i = 0
    length = len(line)
    while i < length:
        char = line[i]
        if escape is not None and char == escape and i + 1 < length and line[i + 1] == quote:
            buffer.append(quote)
            i += 2
            continue
        if char == quote:
            in_quotes = not in_quotes
        elif char == delimiter and not in_quotes:
            fields.append("".join(buffer))
            buffer = []
        else:
            buffer.append(char)
        i += 1
    fields.append("".join(buffer))

    if options.trim_whitespace:
        return [value.strip() for value in fields]
    return fields
