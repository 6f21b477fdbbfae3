"""Statement extraction, test assembly and spec resolution.

This package defines the pipeline turning documentation sources into
resolved specs:
- scanning documents for positioned statements;
- assembling statements into tests and steps;
- reading input files into raw specs;
- resolving specs into tests expanded into per-target contexts.

The primary public entry points are `DocumentReader`, which turns files
into raw specs, and `SpecResolver`, which resolves them.
"""

from .assembler import TestAssembler
from .contexts import ContextResolver
from .descriptions import FileDescriptionLoader
from .migration import legacy_to_v3
from .reader import DocumentReader
from .resolver import SpecResolver
from .scanner import Match, StatementScanner
from .substitution import normalize_step, substitute

__all__ = (
    'ContextResolver',
    'DocumentReader',
    'FileDescriptionLoader',
    'Match',
    'SpecResolver',
    'StatementScanner',
    'TestAssembler',
    'legacy_to_v3',
    'normalize_step',
    'substitute',
)
