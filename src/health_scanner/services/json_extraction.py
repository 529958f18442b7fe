"""Locate a JSON object inside free-form model output."""

import re

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```")


def extract_json(text: str) -> str:
    """Return the part of `text` most likely to be a JSON object.

    A ```json fenced block wins; otherwise the span from the first ``{`` to
    the last ``}`` is returned. Text with neither comes back unchanged.
    """
    fenced = _FENCED_JSON.search(text)
    if fenced and fenced.group(1):
        return fenced.group(1)

    first_brace = text.find("{")
    last_brace = text.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        return text[first_brace : last_brace + 1]
    return text
