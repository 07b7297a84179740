from __future__ import annotations

import json
from typing import Any, Dict


def strip_jsonc_comments(src: str) -> str:
    # Drops //, # and /* */ comments; string literals are copied untouched.
    out: list[str] = []
    i = 0
    n = len(src)
    quote = ""
    escape = False

    while i < n:
        ch = src[i]
        nxt = src[i + 1] if i + 1 < n else ""

        if quote:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == quote:
                quote = ""
            i += 1
            continue

        if ch in ("\"", "'"):
            quote = ch
            out.append(ch)
            i += 1
            continue

        if (ch == "/" and nxt == "/") or ch == "#":
            end = src.find("\n", i)
            if end < 0:
                break
            i = end
            continue

        if ch == "/" and nxt == "*":
            end = src.find("*/", i + 2)
            i = n if end < 0 else end + 2
            continue

        out.append(ch)
        i += 1

    return "".join(out)


def load_options_file(path: str) -> Dict[str, Any]:
    """Read recording options from a JSONC file.

    The options may sit at the root or under a ``record`` section; the result
    is the raw mapping, not yet validated.
    """
    with open(path, "r", encoding="utf-8") as f:
        raw = f.read()
    raw = raw.lstrip("\ufeff")
    data = json.loads(strip_jsonc_comments(raw))
    if not isinstance(data, dict):
        raise ValueError("config root must be an object")
    section = data.get("record")
    if section is None:
        return data
    if not isinstance(section, dict):
        raise ValueError("config 'record' section must be an object")
    return dict(section)
