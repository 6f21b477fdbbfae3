"""Positional capture substitution and step normalization.

Structured markup action templates reference captured groups with
`$<index>` tokens (`$1` is the first group). Substitution walks the
template tree and rewrites every string holding tokens:
- a string referencing a missing capture is removed: a mapping loses
  the key, a sequence loses the item, and a top-level string makes the
  whole result `None`;
- other values are copied as is.
"""

from json import JSONDecodeError, loads
from typing import TYPE_CHECKING

from docprobe.names import CAPTURE_PATTERN
from docprobe.values import MAPPINGS, SEQUENCES, normalize

if TYPE_CHECKING:
    from collections.abc import Sequence

    from docprobe.values import Step, Value

#: Marker of a value referencing a missing capture.
_MISSING = object()


def _substitute_string(value: str, captures: 'Sequence[str | None]') -> 'str | object':
    """Replace capture tokens in a string."""
    indices = [int(token.group('index')) for token in CAPTURE_PATTERN.finditer(value)]
    if not indices:
        return value

    if any(index >= len(captures) or captures[index] is None for index in indices):
        return _MISSING

    return CAPTURE_PATTERN.sub(lambda token: captures[int(token.group('index'))], value)


def _substitute(value: 'Value', captures: 'Sequence[str | None]') -> 'Value | object':
    """Recursively substitute capture tokens."""
    if isinstance(value, str):
        return _substitute_string(value, captures)

    if isinstance(value, MAPPINGS):
        result = {}
        for key, item in value.items():
            if (substituted := _substitute(item, captures)) is not _MISSING:
                result[key] = substituted
        return result

    if isinstance(value, SEQUENCES):
        return [
            substituted
            for item in value
            if (substituted := _substitute(item, captures)) is not _MISSING
        ]

    return value


def substitute(template: 'Value', captures: 'Sequence[str | None]') -> 'Value':
    """Substitute positional capture tokens in an action template.

    The template is never modified.

    Args:
        template: Structured action template.
        captures: Whole match followed by the captured groups.

    Returns:
        A new value with tokens replaced, or `None` if the template is
        a string referencing a missing capture.

    Examples:
        >>> substitute({'goTo': '$1', 'stepId': '$2'}, ('go', 'https://x.com', None))
        {'goTo': 'https://x.com'}
    """
    result = _substitute(normalize(template), captures)
    if result is _MISSING:
        return None

    return result


def parse_header_lines(headers: str) -> dict[str, str]:
    """Parse `Key: Value` lines into a mapping.

    Lines without a colon, or with an empty key or value, are skipped.
    """
    parsed = {}
    for line in headers.split('\n'):
        key, colon, value = line.partition(':')
        if not colon:
            continue
        key, value = key.strip(), value.strip()
        if key and value:
            parsed[key] = value

    return parsed


def normalize_step(step: 'Step') -> 'Step':
    """Normalize composite action shapes of a detected step.

    An `httpRequest` step with headers given as a single string gets
    them parsed into a mapping, and a body string that looks like JSON
    is parsed when it is valid JSON.

    Args:
        step: Step after substitution.

    Returns:
        A normalized copy of the step.
    """
    step = normalize(step)

    http_request = step.get('httpRequest')
    if not isinstance(http_request, dict):
        return step

    request = http_request.get('request')
    if not isinstance(request, dict):
        return step

    if isinstance(headers := request.get('headers'), str):
        request['headers'] = parse_header_lines(headers)

    body = request.get('body')
    if isinstance(body, str) and body.strip().startswith(('{', '[')):
        try:
            request['body'] = loads(body)
        except JSONDecodeError:
            pass

    return step
