"""Schema collaborator contracts and their built-in implementations.

Assembly and resolution consume three collaborators:
- a schema validator checking an object against a named schema and
  returning its normalized form;
- a schema migrator moving legacy objects to the current schema;
- a description loader fetching external API descriptions.

The built-in validator and migrator are backed by the models of
`docprobe.schema.steps`. The built-in description loader lives in
`docprobe.core.descriptions`.
"""

from typing import TYPE_CHECKING, Any, Protocol

from pydantic import Field, ValidationError

from docprobe.errors import MigrationError
from docprobe.models import SchemaModel
from docprobe.schema import SpecV3, StepV2, StepV3, TestV2, TestV3
from docprobe.values import normalize

if TYPE_CHECKING:
    from pydantic import BaseModel

    from docprobe.values import Step, Value

#: Built-in schemas by key.
SCHEMAS: dict[str, type['BaseModel']] = {
    'spec_v3': SpecV3,
    'step_v2': StepV2,
    'step_v3': StepV3,
    'test_v2': TestV2,
    'test_v3': TestV3,
}

#: Legacy step actions renamed in the current schema.
ACTION_RENAMES = {
    'saveScreenshot': 'screenshot',
    'setVariables': 'loadVariables',
    'startRecording': 'record',
    'stopRecording': 'stopRecord',
    'typeKeys': 'type',
}

#: Legacy `httpRequest` fields moved under `request` and `response`.
HTTP_REQUEST_FIELDS = {
    'requestData': ('request', 'body'),
    'requestHeaders': ('request', 'headers'),
    'requestParams': ('request', 'parameters'),
    'responseData': ('response', 'body'),
    'responseHeaders': ('response', 'headers'),
}


class ValidationResult(SchemaModel):
    """Outcome of a schema validation."""

    valid: bool = Field(
        title='Validity flag',
    )

    errors: list[str] = Field(
        default_factory=list,
        title='Validation errors',
        description='Human-readable validation issues.',
    )

    object: dict[str, Any] | None = Field(
        default=None,
        title='Normalized object',
        description='Normalized object when valid, the input otherwise.',
    )


class SchemaValidator(Protocol):
    """Validate and normalize an object against a named schema."""

    def validate(self, schema_key: str, obj: 'Value') -> ValidationResult:
        """Validate an object.

        Args:
            schema_key: Schema name such as `step_v3` or `test_v3`.
            obj: Object to validate.

        Returns:
            Validation outcome with the normalized object.
        """
        ...


class SchemaMigrator(Protocol):
    """Transform an object between schema generations."""

    def transform(self, obj: dict[str, 'Value'],
                  from_schema: str, to_schema: str) -> dict[str, 'Value']:
        """Transform an object.

        Args:
            obj: Object valid against `from_schema`.
            from_schema: Source schema name.
            to_schema: Target schema name.

        Returns:
            The transformed object.

        Raises:
            MigrationError: If the object can not be transformed.
        """
        ...


class DescriptionLoader(Protocol):
    """Fetch and dereference an external API description."""

    async def load(self, path_or_url: str) -> dict[str, 'Value']:
        """Load a description document.

        Args:
            path_or_url: Local path or URL of the document.

        Returns:
            The fully dereferenced document.
        """
        ...


def _format_errors(error: ValidationError) -> list[str]:
    """Render validation issues as `location: message` lines."""
    errors = []
    for item in error.errors(include_url=False, include_input=False):
        location = '.'.join(str(key) for key in item['loc'])
        errors.append(f'{location}: {item["msg"]}' if location else item['msg'])

    return errors


class BuiltinValidator:
    """Schema validator backed by the built-in Pydantic models."""

    def validate(self, schema_key: str, obj: 'Value') -> ValidationResult:
        """Validate an object against a built-in schema.

        The normalized object only carries the keys which were set,
        using their camelCase names.

        Raises:
            KeyError: If the schema key is unknown.
        """
        model = SCHEMAS[schema_key]

        try:
            instance = model.model_validate(obj)
        except ValidationError as error:
            return ValidationResult(
                valid=False,
                errors=_format_errors(error),
                object=obj if isinstance(obj, dict) else None,
            )

        return ValidationResult(
            valid=True,
            object=instance.model_dump(by_alias=True, exclude_unset=True, mode='json'),
        )


class BuiltinMigrator:
    """Migrator from the legacy `v2` schema to the current `v3` schema.

    Legacy steps carry an `action` field naming the action and keep the
    action options next to it. Current steps are keyed by the action name.
    """

    def __init__(self, validator: SchemaValidator | None = None) -> None:
        """Initialize the migrator.

        Args:
            validator: Validator checking legacy input objects.
        """
        self.validator = validator or BuiltinValidator()

    def transform(self, obj: dict[str, 'Value'],
                  from_schema: str, to_schema: str) -> dict[str, 'Value']:
        """Transform a legacy test or step.

        Raises:
            MigrationError: If the schema pair is not supported or
                the object is not a valid legacy object.
        """
        handlers = {
            ('step_v2', 'step_v3'): self.transform_step,
            ('test_v2', 'test_v3'): self.transform_test,
        }

        if (handler := handlers.get((from_schema, to_schema))) is None:
            raise MigrationError(f'Can not migrate from {from_schema!r} to {to_schema!r}')

        result = self.validator.validate(from_schema, obj)
        if not result.valid or result.object is None:
            raise MigrationError(
                f'Object is not a valid {from_schema!r} object: {"; ".join(result.errors)}',
                context={'element': obj},
            )

        return handler(result.object)

    def transform_test(self, test: dict[str, 'Value']) -> dict[str, 'Value']:
        """Map a legacy test onto the current test shape."""
        migrated: dict[str, Value] = {}

        keys = {
            'id': 'testId',
            'description': 'description',
            'file': 'contentPath',
            'detectSteps': 'detectSteps',
            'setup': 'before',
            'cleanup': 'after',
        }
        for legacy, current in keys.items():
            if legacy in test:
                migrated[current] = test[legacy]

        if contexts := test.get('contexts'):
            migrated['runOn'] = [self.transform_context(context) for context in contexts]

        migrated['steps'] = [self.transform_step(step) for step in test.get('steps', [])]

        return migrated

    @staticmethod
    def transform_context(context: dict[str, 'Value']) -> dict[str, 'Value']:
        """Map a legacy context (`app` and `platforms`) onto a run target."""
        target: dict[str, Value] = {}

        if platforms := context.get('platforms'):
            target['platforms'] = platforms

        app = context.get('app')
        if isinstance(app, dict) and (name := app.get('name')):
            browser: dict[str, Value] = {'name': name}
            if options := app.get('options'):
                browser.update(options)
            target['browsers'] = [browser]

        return target

    @staticmethod
    def transform_step(step: dict[str, 'Value']) -> 'Step':
        """Map a legacy `action`-style step onto an action-keyed step."""
        options = normalize(step)
        action = options.pop('action')

        migrated: Step = {}
        if (step_id := options.pop('id', None)) is not None:
            migrated['stepId'] = step_id
        if (description := options.pop('description', None)) is not None:
            migrated['description'] = description

        match action:
            case 'goTo' | 'checkLink' if set(options) == {'url'}:
                payload = options['url']
            case 'find':
                if 'matchText' in options:
                    options['elementText'] = options.pop('matchText')
                if 'typeKeys' in options:
                    options['type'] = options.pop('typeKeys')
                payload = options
            case 'httpRequest':
                payload = {}
                for key, item in options.items():
                    if key not in HTTP_REQUEST_FIELDS:
                        payload[key] = item
                        continue
                    section, field = HTTP_REQUEST_FIELDS[key]
                    payload.setdefault(section, {})[field] = item
            case 'setVariables':
                payload = options.get('path')
            case 'stopRecording':
                payload = True
            case 'saveScreenshot' | 'startRecording' if not options:
                payload = True
            case 'typeKeys':
                if 'delay' in options:
                    options['inputDelay'] = options.pop('delay')
                payload = options['keys'] if set(options) == {'keys'} else options
            case 'wait':
                payload = options.get('duration', True)
            case _:
                payload = options

        migrated[ACTION_RENAMES.get(action, action)] = payload

        return migrated
