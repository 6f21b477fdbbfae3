"""Runtime configuration.

The configuration is resolved from keyword arguments (by field name),
a configuration file (JSON or YAML, camelCase keys) and environment
variables prefixed with `DOCPROBE_` (`DOCPROBE_DETECT_STEPS=false`).
Configuration file values may reference environment variables as `$NAME`.
"""

import os
from logging import getLogger
from pathlib import Path
from typing import Any, Literal, Self

from pydantic import Field, field_validator
from pydantic.alias_generators import to_snake
from pydantic_settings import DotEnvSettingsSource, SettingsConfigDict

from docprobe.builtins.file_types import DEFAULT_FILE_TYPES
from docprobe.models import SchemaModel, SettingsModel
from docprobe.values import expand_variables, parse_object

from .catalog import FileType, extend_file_type, get_file_type
from .documents import ExternalDoc  # noqa: TC001
from .targets import RunTarget  # noqa: TC001

type LogLevel = Literal['silent', 'error', 'warning', 'info', 'debug']

logger = getLogger(__name__)


class Integrations(SchemaModel):
    """Third-party integrations."""

    open_api: list[ExternalDoc] = Field(
        default_factory=list,
        title='API descriptions',
        description='Descriptions available to every spec.',
    )


class Config(SettingsModel):
    """Detection and resolution settings."""

    model_config = SettingsConfigDict(
        env_prefix='DOCPROBE_',
    )

    detect_steps: bool = Field(
        default=True,
        title='Detect steps',
        description='Detect steps from prose with markup rules.',
    )

    origin: str | None = Field(
        default=None,
        title='Origin',
        description='Base URL attached to detected `goTo` and `checkLink` steps.',
    )

    run_on: list[RunTarget] = Field(
        default_factory=list,
        title='Run targets',
        description='Default run targets of specs without their own.',
    )

    integrations: Integrations = Field(
        default_factory=Integrations,
        title='Integrations',
    )

    file_types: list[FileType] = Field(
        default_factory=lambda: [get_file_type(name) for name in DEFAULT_FILE_TYPES],
        title='File types',
        description=(
            'Pattern catalog entries. Strings name built-in entries, objects '
            'may extend a built-in entry.'
        ),
    )

    log_level: LogLevel = Field(
        default='info',
        title='Log level',
    )

    strict: bool = Field(
        default=False,
        title='Strict mode',
        description='Raise on invalid statements instead of warning and dropping them.',
    )

    load_variables: str | None = Field(
        default=None,
        title='Variables file',
        description=(
            'Dotenv file, relative to the configuration file, providing '
            'variables referenced as `$NAME` in configuration values.'
        ),
    )

    @field_validator('file_types', mode='before')
    @classmethod
    def resolve_file_types(cls, value: Any) -> Any:  # noqa: ANN401
        """Replace built-in names by entries and merge extended entries."""
        if isinstance(value, (str, dict, FileType)):
            value = [value]

        if not isinstance(value, (list, tuple)):
            return value

        resolved = []
        for item in value:
            if isinstance(item, str):
                resolved.append(get_file_type(item))
                continue
            if not isinstance(item, FileType):
                item = FileType.model_validate(item)
            resolved.append(extend_file_type(item))

        return resolved

    @classmethod
    def from_file(cls, path: Path, **overrides: Any) -> Self:  # noqa: ANN401
        """Load a configuration file.

        Variable references (`$NAME`) in file values are expanded from the
        environment. A `loadVariables` dotenv file, relative to the
        configuration file, provides variables taking precedence over the
        environment and may also hold `DOCPROBE_` settings.

        Args:
            path: Path to a JSON or YAML configuration file.
            **overrides: Values (by field name) taking precedence over
                the file content.

        Returns:
            The resolved configuration.

        Raises:
            ValueError: If the file does not hold a JSON or YAML object.
        """
        content = parse_object(path.read_text(encoding='utf-8')) or {}
        if not isinstance(content, dict):
            raise ValueError(f'{path} does not hold a configuration object')

        variables = dict(os.environ)

        env_file = None
        if load_variables := content.get('loadVariables'):
            env_file = path.parent / str(load_variables)
            variables.update(cls.read_variables(env_file))

        content = expand_variables(content, variables)

        return cls(_env_file=env_file, **{
            **{to_snake(key): value for key, value in content.items()},
            **overrides,
        })

    @classmethod
    def read_variables(cls, path: Path) -> dict[str, str]:
        """Read variables of a dotenv file.

        Args:
            path: Path to the dotenv file.

        Returns:
            Variables by case-sensitive name. Empty if the file does not exist.
        """
        if not path.is_file():
            logger.warning('Variables file %s not found', path)
            return {}

        source = DotEnvSettingsSource(cls, env_file=path, case_sensitive=True)

        return {
            name: value
            for name, value in source.env_vars.items()
            if value is not None
        }

    def file_type_for(self, path: Path | str) -> FileType | None:
        """Find the file type handling a file.

        Args:
            path: File path.

        Returns:
            The first file type listing the file extension, if any.
        """
        extension = Path(path).suffix
        for file_type in self.file_types:
            if file_type.accepts(extension):
                return file_type

        return None
