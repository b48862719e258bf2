"""Pipeline components.

This package contains the query stages: parameter validation, CSV parsing,
record filtering and result shaping.
"""
