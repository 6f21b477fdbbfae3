"""Core value types for statement payloads.

Statements, steps and tests are loosely typed JSON-like trees. This module
defines the value type system used for them and helpers to parse statement
text into values, to copy value trees without sharing references and to
expand environment variable references in configuration values.
"""

from json import JSONDecodeError, loads
from typing import TYPE_CHECKING, Any

from yaml import YAMLError, safe_load

from docprobe.names import VARIABLE_PATTERN

if TYPE_CHECKING:
    from collections.abc import Mapping
    from re import Match

#: Scalars are atomic JSON-compatible values.
type Scalar = str | int | float | bool

#: A value is any JSON-compatible tree.
type Value = Scalar | list['Value'] | dict[str, 'Value'] | None

#: A step is an open mapping keyed by its action name.
type Step = dict[str, Value]

#: Any Python object received from a parser or a caller prior to
#: normalization into a strict `Value`.
type RuntimeValue = Any

MAPPINGS = (dict,)
SCALARS = (str, int, float, bool)
SEQUENCES = (list, tuple)


def _normalize_key(value: RuntimeValue) -> str:
    """Validate and normalize a mapping key.

    YAML allows non-string keys (for example `1: one` or `yes: no`), JSON
    does not. Scalar keys are converted to their string form.

    Args:
        value: Candidate mapping key.

    Returns:
        The key as a string.

    Raises:
        TypeError: If the provided key is not a scalar.
    """
    if isinstance(value, str):
        return value

    if isinstance(value, bool):
        return str(value).lower()

    if isinstance(value, SCALARS):
        return str(value)

    raise TypeError(f'Can not use {value!r} as mapping key')


def normalize(value: RuntimeValue) -> Value:
    """Recursively normalize a runtime value into a `Value`.

    The result never shares containers with the input, so it is also used
    to copy step and test trees.

    Args:
        value: Runtime value to normalize.

    Returns:
        A fully normalized JSON-compatible value.

    Raises:
        TypeError: If the value type is unsupported.
    """
    if value is None:
        return None

    if isinstance(value, SCALARS):
        return value

    if isinstance(value, MAPPINGS):
        return {
            _normalize_key(key): normalize(item)
            for key, item in value.items()
        }

    if isinstance(value, SEQUENCES):
        return [normalize(item) for item in value]

    # YAML timestamps and similar scalars
    if hasattr(value, 'isoformat'):
        return value.isoformat()

    raise TypeError(f'{value!r} has unsupported type')


def parse_object(content: RuntimeValue) -> Value:
    """Parse statement text as JSON, falling back to YAML.

    Non-string input is returned normalized.

    Args:
        content: Statement text or an already parsed value.

    Returns:
        The parsed value.

    Raises:
        ValueError: If the text is neither valid JSON nor valid YAML.
    """
    if not isinstance(content, str):
        return normalize(content)

    try:
        return normalize(loads(content))
    except JSONDecodeError:
        pass

    try:
        return normalize(safe_load(content))
    except (YAMLError, TypeError) as base:
        raise ValueError('Invalid JSON or YAML format') from base


def _expand_text(value: str, variables: 'Mapping[str, str]') -> str:
    """Replace variable references in a string with variable values."""
    def replace(reference: 'Match[str]') -> str:
        name = reference['name']
        if not (replacement := variables.get(name)):
            return reference[0]
        return _expand_text(replacement, _without(variables, name))

    return VARIABLE_PATTERN.sub(replace, value)


def _expand_string(value: str, variables: 'Mapping[str, str]') -> Value:
    """Expand a string, replacing a lone object or array reference by its value."""
    whole = VARIABLE_PATTERN.fullmatch(value)
    if whole and (replacement := variables.get(whole['name'])):
        try:
            parsed = loads(replacement)
        except JSONDecodeError:
            parsed = None

        if isinstance(parsed, (dict, list)):
            return expand_variables(normalize(parsed), _without(variables, whole['name']))

    return _expand_text(value, variables)


def _without(variables: 'Mapping[str, str]', name: str) -> dict[str, str]:
    """Copy variables without one name, so self references stay unexpanded."""
    return {key: value for key, value in variables.items() if key != name}


def expand_variables(value: Value, variables: 'Mapping[str, str]') -> Value:
    """Recursively expand `$NAME` variable references.

    References to undefined or empty variables are kept as is. Variable
    values may reference other variables. A string made of a single
    reference to a JSON object or array is replaced by the parsed value.
    Mapping keys are never expanded and the input is never modified.

    Args:
        value: Value tree, usually a configuration object.
        variables: Variable values, usually the environment.

    Returns:
        A new value with references expanded.

    Examples:
        >>> expand_variables({'origin': '$BASE_URL/docs'}, {'BASE_URL': 'https://x.com'})
        {'origin': 'https://x.com/docs'}
    """
    if isinstance(value, str):
        return _expand_string(value, variables)

    if isinstance(value, MAPPINGS):
        return {key: expand_variables(item, variables) for key, item in value.items()}

    if isinstance(value, SEQUENCES):
        return [expand_variables(item, variables) for item in value]

    return value
