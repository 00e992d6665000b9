"""
Loader for process description documents.

Handles turning JSON text, JSON files and plain dictionaries into a validated
ProcessDescription. Every failure is reported as a ProcessDescriptionError so
callers only have one exception type to handle.
"""

import json
from pathlib import Path
from typing import Any, Mapping, Union

from pydantic import ValidationError

from .models import ProcessDescription


class ProcessDescriptionError(Exception):
    """Raised when a process description cannot be loaded."""

    pass


def parse_description(source: Union[str, bytes, Mapping[str, Any]]) -> ProcessDescription:
    """
    Parse a process description from JSON text or a mapping.

    Args:
        source: JSON document as text/bytes, or an already decoded mapping.

    Returns:
        The validated ProcessDescription.

    Raises:
        ProcessDescriptionError: If the JSON is malformed or fails validation.
    """
    try:
        if isinstance(source, (str, bytes)):
            data = json.loads(source)
        else:
            data = dict(source)
    except json.JSONDecodeError as exc:
        raise ProcessDescriptionError(
            f"Line {exc.lineno}: invalid JSON: {exc.msg}"
        ) from exc
    except (TypeError, ValueError) as exc:
        raise ProcessDescriptionError(
            f"Process description must be JSON text or a mapping, not {type(source).__name__}"
        ) from exc

    if not isinstance(data, dict):
        raise ProcessDescriptionError(
            "Process description must be a JSON object with a 'phases' list"
        )

    try:
        return ProcessDescription.model_validate(data)
    except ValidationError as exc:
        raise ProcessDescriptionError(
            f"Invalid process description: {exc.error_count()} error(s)\n{exc}"
        ) from exc


def load_description(path: Union[str, Path]) -> ProcessDescription:
    """
    Load a process description from a JSON file.

    Args:
        path: Path to the JSON file.

    Returns:
        The validated ProcessDescription.

    Raises:
        ProcessDescriptionError: If the file cannot be read or parsed.
    """
    file_path = Path(path)
    try:
        text = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProcessDescriptionError(f"Cannot read {file_path}: {exc}") from exc
    return parse_description(text)
