"""JSON extraction from analysis-service output.

The service is asked for a single JSON object but routinely wraps it in a
markdown fence or a sentence of prose. Extraction tries, in order: the whole
text, the first fenced block, the outermost ``{...}`` span. Text that is
valid JSON as a whole but not an object is rejected outright.
"""

import json
import re
from typing import Any, Dict, Iterator

from vendorscope.errors import ResponseShapeInvalid

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*\n(.*?)\n\s*```", re.DOTALL)
_BRACE_RE = re.compile(r"\{.*\}", re.DOTALL)


def _candidates(text: str) -> Iterator[str]:
    fence = _FENCE_RE.search(text)
    if fence:
        yield fence.group(1).strip()
    brace = _BRACE_RE.search(text)
    if brace:
        yield brace.group(0)


def parse_json_object(raw: str) -> Dict[str, Any]:
    """Return the first JSON object found in ``raw``.

    Raises:
        ResponseShapeInvalid: if the input is empty, or no candidate decodes
            to a JSON object.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise ResponseShapeInvalid("Empty analysis content")

    text = raw.strip()
    try:
        whole = json.loads(text)
    except json.JSONDecodeError:
        pass
    else:
        if isinstance(whole, dict):
            return whole
        # A whole-text array or scalar is never searched for an inner object.
        raise ResponseShapeInvalid(
            f"Analysis content is JSON {type(whole).__name__}, not an object"
        )

    for candidate in _candidates(text):
        try:
            result = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(result, dict):
            return result

    raise ResponseShapeInvalid(f"No JSON object in analysis content: {text[:200]}")
