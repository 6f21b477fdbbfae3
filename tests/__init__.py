"""Test suite for the docprobe package.

This package contains unit and integration tests validating statement
scanning, test assembly, context and spec resolution, document reading
and the command-line interface.
"""
