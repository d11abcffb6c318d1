"""
Env-file editing — rewrite ``KEY=value`` lines in a dotenv file.

Only lines that already start with ``KEY=`` are rewritten, and the
whole remainder of such a line is replaced. Keys the file does not
contain are not appended: the file written by GeoNode's own
``create-envfile.py`` stays the authority on which keys exist.
"""

from __future__ import annotations

import re


def set_env_values(text: str, values: dict[str, str]) -> tuple[str, list[str]]:
    """Replace the values of existing keys.

    Args:
        text: Full dotenv file content.
        values: Mapping of key to new (literal) value.

    Returns:
        (new_text, changed_keys). ``changed_keys`` lists keys that were
        found at least once, in the order given by ``values``.
    """
    patterns = {key: re.compile(rf"^{re.escape(key)}=.*$") for key in values}
    found: set[str] = set()
    out: list[str] = []

    for line in text.splitlines(keepends=True):
        body = line.rstrip("\r\n")
        ending = line[len(body):]
        for key, pattern in patterns.items():
            if pattern.match(body):
                body = f"{key}={values[key]}"
                found.add(key)
                break
        out.append(body + ending)

    return "".join(out), [k for k in values if k in found]

