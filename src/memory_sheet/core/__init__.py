"""Core types: units, errors, templates and the project models."""
