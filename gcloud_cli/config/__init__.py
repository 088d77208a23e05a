"""Configuration primitives for the gcloud CLI task."""

from .settings import DEFAULT_IMAGE, DEFAULT_INTERPRETER, GCloudCliSettings, get_settings

__all__ = ["DEFAULT_IMAGE", "DEFAULT_INTERPRETER", "GCloudCliSettings", "get_settings"]
