"""Declarative models for catalogs, run targets, steps and resolved specs.

Defines immutable Pydantic models describing pattern catalog entries, run
targets, external API descriptions, the built-in step, test and spec
schemas, the runtime configuration and the resolved output tree.
"""

from .catalog import FileType, InlineStatements, MarkupRule
from .config import Config, Integrations
from .documents import ExternalDoc, merge_documents
from .specs import Context, Resolution, ResolvedSpec, ResolvedTest
from .steps import SpecV3, StepV2, StepV3, TestV2, TestV3
from .targets import Browser, RunTarget

__all__ = (
    'Browser',
    'Config',
    'Context',
    'ExternalDoc',
    'FileType',
    'InlineStatements',
    'Integrations',
    'MarkupRule',
    'Resolution',
    'ResolvedSpec',
    'ResolvedTest',
    'RunTarget',
    'SpecV3',
    'StepV2',
    'StepV3',
    'TestV2',
    'TestV3',
    'merge_documents',
)
