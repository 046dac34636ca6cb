"""
Recovery of a JSON array from free-form model output.

Kept apart from transport code so it can be exercised with arbitrary text.
"""

import json
import re
from typing import Any, Dict, List, Optional

from portfolio_radar.utils.errors import ResponseParseError

_FENCED_ARRAY = re.compile(r"```json\s*(\[[\s\S]*?\])\s*```")


def clean_json(text: Optional[str]) -> str:
    """
    Return the substring of ``text`` most likely to be a JSON array.

    1. Slice from the first ``[`` to the last ``]``.
    2. Otherwise the contents of a ```json fenced block holding an array.
    3. Otherwise ``"[]"``.
    """
    if not text:
        return "[]"

    start = text.find("[")
    end = text.rfind("]")
    if start != -1 and end != -1 and end > start:
        return text[start:end + 1]

    block = _FENCED_ARRAY.search(text)
    if block:
        return block.group(1)

    return "[]"


def parse_records(text: Optional[str]) -> List[Dict[str, Any]]:
    """
    Parse the JSON array in ``text`` into a list of objects.

    Non-object elements are skipped and a non-array payload yields an empty
    list.

    Raises:
        ResponseParseError: the recovered substring is not valid JSON
    """
    payload = clean_json(text)
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise ResponseParseError(str(e), payload) from e

    if not isinstance(data, list):
        return []
    return [item for item in data if isinstance(item, dict)]
