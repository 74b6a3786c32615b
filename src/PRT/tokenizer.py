"""
Delimited-text tokenizer.

Splits one line of comma-separated text into field values. Handles:
  - quoted fields: "field, with comma"
  - escaped quotes: \\"inside\\"
  - unquoted and empty fields
Unbalanced quotes never raise; whatever was accumulated is returned.
"""

_SEPARATOR = ","
_QUOTE = '"'
_ESCAPE = "\\"
_BOM = "\ufeff"


def tokenize(line: str) -> list[str]:
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False
    previous = ""

    for i, char in enumerate(line):
        if char == _QUOTE and previous != _ESCAPE:
            # toggle quote state; the quote itself is not part of the value
            in_quotes = not in_quotes
        elif char == _SEPARATOR and not in_quotes:
            fields.append(_clean_value("".join(current)))
            current = []
        elif not (char == _ESCAPE and i + 1 < len(line) and line[i + 1] == _QUOTE):
            current.append(char)
        previous = char

    # last field has no trailing separator
    fields.append(_clean_value("".join(current)))
    return fields


def _clean_value(value: str) -> str:
    """
    Trim, drop a bounding pair of quotes, unescape leftover \\" and trim again.
    """
    cleaned = value.strip()
    if len(cleaned) >= 2 and cleaned.startswith(_QUOTE) and cleaned.endswith(_QUOTE):
        cleaned = cleaned[1:-1]
    cleaned = cleaned.replace(_ESCAPE + _QUOTE, _QUOTE)
    return cleaned.strip()


def strip_bom(text: str) -> str:
    """Spreadsheet-exported CSV often starts with a UTF-8 byte order mark."""
    if text.startswith(_BOM):
        return text[1:]
    return text
