"""
Validation of admin-supplied runtime configuration.

Runs before any workspace or container exists. The values checked here end
up as a Docker image reference, a host file name and container limits, so
anything outside a narrow grammar is rejected rather than escaped.
"""

from __future__ import annotations

import re

from structlog import get_logger

from judge.sandbox.errors import InvalidConfiguration
from judge.sandbox.models import RuntimeConfig

logger = get_logger()

# Alphanumerics plus the separators a registry reference needs
IMAGE_PATTERN = re.compile(r"^[A-Za-z0-9.\-_:/@]+$")
FILE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")

# Names that match FILE_NAME_PATTERN but still resolve outside the workspace
RESERVED_FILE_NAMES: set[str] = {".", ".."}


def is_valid_image(image: str) -> bool:
    """Return True if *image* is a safe container image reference."""
    return isinstance(image, str) and bool(IMAGE_PATTERN.fullmatch(image))


def is_valid_file_name(file_name: str) -> bool:
    """Return True if *file_name* is a plain name inside the workspace."""
    return (
        isinstance(file_name, str)
        and bool(FILE_NAME_PATTERN.fullmatch(file_name))
        and file_name not in RESERVED_FILE_NAMES
    )


def _is_positive_number(value: object) -> bool:
    # bool is an int subclass; True must not pass as a 1 MB limit
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return value > 0


def validate_runtime_config(runtime: RuntimeConfig) -> None:
    """
    Raise ``InvalidConfiguration`` if *runtime* is unsafe to execute.

    Checks the image reference, the source file name and both resource
    limits. The run command is admin-defined and is written to a script
    file, never interpolated into a host shell.
    """
    if not is_valid_image(runtime.container_image):
        logger.warning("Rejected container image", image=runtime.container_image)
        raise InvalidConfiguration(f"Invalid docker image name: {runtime.container_image!r}")

    if not is_valid_file_name(runtime.file_name):
        logger.warning("Rejected source file name", file_name=runtime.file_name)
        raise InvalidConfiguration(f"Invalid file name: {runtime.file_name!r}")

    if not _is_positive_number(runtime.memory_limit_mb):
        raise InvalidConfiguration(f"Invalid memory limit: {runtime.memory_limit_mb!r}")

    if not _is_positive_number(runtime.cpu_limit_cores):
        raise InvalidConfiguration(f"Invalid cpu limit: {runtime.cpu_limit_cores!r}")

    if not isinstance(runtime.run_command, str) or not runtime.run_command.strip():
        raise InvalidConfiguration("Run command must not be empty")
