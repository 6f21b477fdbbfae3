"""External API description loading.

Descriptions (OpenAPI or Arazzo documents) are read from local files or
fetched over HTTP, parsed as JSON or YAML and have their `$ref`
references inlined, both local JSON pointers (`#/components/...`) and
references to other documents (`common.yaml#/Pet`). A reference which
points back into a document being inlined is left as is.
"""

from asyncio import to_thread
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import urljoin, urlparse

import requests

from docprobe.errors import DescriptionError
from docprobe.values import MAPPINGS, SEQUENCES, parse_object

if TYPE_CHECKING:
    from docprobe.values import Value

logger = getLogger(__name__)

#: Timeout (seconds) of remote description requests.
REQUEST_TIMEOUT = 30


def is_url(location: str) -> bool:
    """Check whether a location is an HTTP URL."""
    return urlparse(location).scheme in ('http', 'https')


def join_location(base: str, reference: str) -> str:
    """Resolve a document reference against the referring document."""
    if not reference:
        return base

    if is_url(reference):
        return reference

    if is_url(base):
        return urljoin(base, reference)

    return str(Path(base).parent / reference)


def resolve_pointer(document: 'Value', pointer: str) -> 'Value':
    """Resolve a JSON pointer (`/paths/~1pets/get`) in a document.

    Raises:
        DescriptionError: If the pointer does not resolve.
    """
    target = document
    for token in pointer.split('/')[1:] if pointer else ():
        token = token.replace('~1', '/').replace('~0', '~')
        try:
            if isinstance(target, MAPPINGS):
                target = target[token]
            elif isinstance(target, SEQUENCES):
                target = target[int(token)]
            else:
                raise KeyError(token)
        except (KeyError, IndexError, ValueError) as base:
            raise DescriptionError(f'Reference {pointer!r} does not resolve') from base

    return target


class FileDescriptionLoader:
    """Description loader for local files and HTTP URLs.

    Blocking reads run in a worker thread, so loading never blocks
    the event loop.
    """

    def __init__(self, base_path: Path | None = None,
                 timeout: float = REQUEST_TIMEOUT) -> None:
        """Initialize the loader.

        Args:
            base_path: Directory relative description paths are resolved
                against. Defaults to the working directory.
            timeout: Timeout (seconds) of remote requests.
        """
        self.base_path = base_path
        self.timeout = timeout

    async def load(self, path_or_url: str) -> dict[str, 'Value']:
        """Load and dereference a description.

        Raises:
            DescriptionError: If the description can not be read or parsed.
        """
        return await to_thread(self.load_sync, path_or_url)

    def load_sync(self, path_or_url: str) -> dict[str, 'Value']:
        """Load and dereference a description in the calling thread.

        Raises:
            DescriptionError: If the description can not be read or parsed.
        """
        location = path_or_url
        if not is_url(location) and self.base_path is not None:
            location = str(self.base_path / location)

        documents: dict[str, Value] = {}
        document = self.read(location, documents)
        if not isinstance(document, dict):
            raise DescriptionError(f'Description {path_or_url!r} is not an object')

        logger.debug('Loaded description %s', location)

        return self.inline(document, location, documents, ())

    def read(self, location: str, documents: dict[str, 'Value']) -> 'Value':
        """Read and parse a document, once per location.

        Raises:
            DescriptionError: If the document can not be read or parsed.
        """
        if location in documents:
            return documents[location]

        try:
            if is_url(location):
                response = requests.get(location, timeout=self.timeout)
                response.raise_for_status()
                text = response.text
            else:
                text = Path(location).read_text(encoding='utf-8')
            document = parse_object(text)
        except (OSError, ValueError, requests.exceptions.RequestException) as base:
            raise DescriptionError(f'Can not load description {location!r}: {base}') from base

        documents[location] = document

        return document

    def inline(self, value: 'Value', location: str,
               documents: dict[str, 'Value'],
               stack: tuple[tuple[str, str], ...]) -> 'Value':
        """Recursively replace `$ref` objects by their targets.

        Args:
            value: Value to dereference.
            location: Location of the document holding the value.
            documents: Already read documents by location.
            stack: References being inlined, used to stop on cycles.

        Returns:
            A dereferenced copy of the value.
        """
        if isinstance(value, SEQUENCES):
            return [self.inline(item, location, documents, stack) for item in value]

        if not isinstance(value, MAPPINGS):
            return value

        reference = value.get('$ref')
        if not isinstance(reference, str):
            return {
                key: self.inline(item, location, documents, stack)
                for key, item in value.items()
            }

        path, _, pointer = reference.partition('#')
        target_location = join_location(location, path)

        key = (target_location, pointer)
        if key in stack:
            return dict(value)

        document = self.read(target_location, documents)
        target = resolve_pointer(document, pointer)

        return self.inline(target, target_location, documents, (*stack, key))
