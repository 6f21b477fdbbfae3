"""External API description models."""

from typing import TYPE_CHECKING

from pydantic import Field

from docprobe.models import PassthroughModel
from docprobe.values import Value  # noqa: TC001

if TYPE_CHECKING:
    from collections.abc import Iterable


class ExternalDoc(PassthroughModel):
    """API description (OpenAPI or Arazzo) referenced by name.

    The name is the identity of a description: a later description with
    the same name replaces an earlier one. Integration options other than
    the declared ones are kept as is.
    """

    name: str = Field(
        title='Description name',
        description='Unique name of the description within a spec or a test.',
    )

    description_path: str | None = Field(
        default=None,
        title='Description path',
        description='Local path or URL of the description document.',
    )

    definition: dict[str, Value] | None = Field(
        default=None,
        title='Description definition',
        description='Loaded and dereferenced description document.',
    )

    @property
    def requires_loading(self) -> bool:
        """Whether the description must be fetched before use."""
        return self.definition is None and bool(self.description_path)


def merge_documents(*groups: 'Iterable[ExternalDoc]') -> list[ExternalDoc]:
    """Merge description lists by name.

    A description replaces an earlier one with the same name and takes
    the position at the end of the list.

    Args:
        *groups: Description lists in increasing priority.

    Returns:
        Merged list of descriptions.
    """
    merged: list[ExternalDoc] = []

    for group in groups:
        for document in group:
            merged = [item for item in merged if item.name != document.name]
            merged.append(document)

    return merged
