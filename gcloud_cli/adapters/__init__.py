"""Workflow engine adapters."""

from .gcloud import cli

__all__ = ["cli"]
