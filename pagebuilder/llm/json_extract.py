from __future__ import annotations

import json
import re
from typing import Any, cast

_CODE_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```\s*$", re.MULTILINE)


def strip_code_fences(text: str) -> str:
    return _CODE_FENCE_RE.sub("", text).strip()


def extract_json_object(text: str) -> dict[str, Any]:
    """Parse the first JSON object out of a model reply.

    Replies are often wrapped in code fences, prefixed with prose, or carry trailing commas.
    Raises ``ValueError`` when no object can be recovered.
    """
    text = strip_code_fences(text or "")
    if not text:
        raise ValueError("Model returned empty response")
    for candidate in (text, _strip_trailing_commas(text)):
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return cast(dict[str, Any], parsed)

    start: int | None = None
    depth = 0
    in_string = False
    escape = False
    for i, ch in enumerate(text):
        if start is None:
            if ch == "{":
                start = i
                depth = 1
                in_string = False
                escape = False
            continue

        if in_string:
            if escape:
                escape = False
                continue
            if ch == "\\":
                escape = True
                continue
            if ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
            continue
        if ch == "{":
            depth += 1
            continue
        if ch == "}":
            depth -= 1
            if depth == 0:
                candidate = text[start : i + 1]
                start = None
                for attempt in (candidate, _strip_trailing_commas(candidate)):
                    try:
                        parsed = json.loads(attempt)
                    except json.JSONDecodeError:
                        continue
                    if isinstance(parsed, dict):
                        return cast(dict[str, Any], parsed)

    raise ValueError("Model did not return a JSON object")


def _strip_trailing_commas(text: str) -> str:
    out: list[str] = []
    in_string = False
    escape = False
    for ch in text:
        if in_string:
            out.append(ch)
            if escape:
                escape = False
                continue
            if ch == "\\":
                escape = True
                continue
            if ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            continue

        if ch in ("}", "]"):
            j = len(out) - 1
            while j >= 0 and out[j].isspace():
                j -= 1
            if j >= 0 and out[j] == ",":
                out.pop(j)
        out.append(ch)

    return "".join(out)
