"""
Line tokenizer shared by the CSV and LinkedIn import parsers.

Quote characters toggle a quoted section (so commas inside quotes do not
split) and are dropped from the output. Doubled quotes ("") and quoted
fields spanning several lines are not supported: files are split on
newlines before tokenizing.
"""

import re

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]")


def clean_field(field: str) -> str:
    """Trim whitespace and one enclosing pair of quotes."""
    field = field.strip()
    if len(field) >= 2 and field.startswith('"') and field.endswith('"'):
        field = field[1:-1]
    return field


def parse_csv_line(line: str) -> list[str]:
    """Split one CSV line into cleaned fields."""
    fields: list[str] = []
    current: list[str] = []
    in_quotes = False

    for char in line:
        if char == '"':
            in_quotes = not in_quotes
        elif char == "," and not in_quotes:
            fields.append(clean_field("".join(current)))
            current = []
        else:
            current.append(char)

    fields.append(clean_field("".join(current)))
    return fields


def normalize_header(name: str) -> str:
    """'First Name', 'first-name' and 'FIRST_NAME' all become 'firstname'."""
    return _NON_ALPHANUMERIC.sub("", name.lower())


def split_lines(content: str) -> list[str]:
    return content.split("\n")
