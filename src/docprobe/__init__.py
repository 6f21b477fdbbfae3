"""Inline test detection and resolution for documentation sources.

The `docprobe` package finds test and step declarations embedded in
documentation (HTML comments, MDX comments, AsciiDoc line comments or
recognizable prose phrasing) and turns them into executable test definitions.

Key features:
- per-format pattern catalogs for markdown, HTML and AsciiDoc sources;
- a statement scanner and a test assembler with ignore regions, nested test
  boundaries and legacy test migration;
- detection of steps from prose with positional capture substitution;
- resolution of tests into per-platform and per-browser execution contexts
  with merged OpenAPI descriptions.

The package only assembles and resolves declarations. It never executes
a step and never talks to a browser or a remote target.
"""
