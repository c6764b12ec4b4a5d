"""Constants for the Gradient notebook status package."""

from pathlib import Path

__all__ = [
    "API_VERSION",
    "CONFIG_FILE",
    "CONFIG_FILE_ENV_VAR",
    "ENV_PREFIX",
    "NOTEBOOK_KIND",
    "ROOT_LOGGER",
]

API_VERSION = "paperspace.com/v1"
"""API version of the ``Notebook`` custom resource."""

NOTEBOOK_KIND = "Notebook"
"""Kind of the ``Notebook`` custom resource."""

CONFIG_FILE = Path("/etc/gradient/notebook.yaml")
"""Default path to the configuration of the inspection tooling."""

ENV_PREFIX = "GRADIENT_NOTEBOOK_"
"""Prefix for configuration environment variables."""

CONFIG_FILE_ENV_VAR = f"{ENV_PREFIX}CONFIG_FILE"

ROOT_LOGGER = "gradient"
"""Name of the root logger for the package."""
