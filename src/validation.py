"""
Declaration Validation - JSON Schema validation of snapshot declarations.

Validates the declared attributes of a snapshot resource and parses them
into a SnapshotDeclaration with its creation mode.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from jsonschema import Draft7Validator
from jsonschema import ValidationError as SchemaValidationError

from errors import ValidationError
from plugins.base import OneShot, Recurring, SnapshotDeclaration

logger = logging.getLogger(__name__)

SNAPSHOT_SCHEMA: Dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["name", "instance_id"],
    "properties": {
        "name": {
            "type": "string",
            "minLength": 1,
            "description": "Unique, short, human readable name of the snapshot",
        },
        "instance_id": {
            "type": "string",
            "minLength": 1,
            "description": "ID of the instance to snapshot",
        },
        "safe": {
            "type": "boolean",
            "default": False,
            "description": "Shut the instance down while the snapshot is taken",
        },
        "cron_timing": {
            "type": ["string", "null"],
            "description": "Cron expression; makes the snapshot recurring",
        },
    },
    "additionalProperties": False,
}


def validate_spec_against_schema(
    spec: Dict[str, Any], schema: Dict[str, Any]
) -> Tuple[bool, Optional[str]]:
    """
    Validate a declaration against a JSON Schema.

    Args:
        spec: The declared attributes to validate
        schema: The JSON Schema to validate against

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        validator = Draft7Validator(schema, format_checker=Draft7Validator.FORMAT_CHECKER)
        errors = sorted(validator.iter_errors(spec), key=lambda e: list(e.path))

        if not errors:
            return True, None

        error_messages = []
        for error in errors:
            path = ".".join(str(p) for p in error.absolute_path) or "(root)"
            error_messages.append(f"{path}: {error.message}")

        return False, "; ".join(error_messages)

    except SchemaValidationError as e:
        return False, f"Validation error: {str(e)}"


def validate_declaration(spec: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """Validate declared snapshot attributes against SNAPSHOT_SCHEMA."""
    if not isinstance(spec, dict):
        return False, "(root): declaration must be an object"
    return validate_spec_against_schema(spec, SNAPSHOT_SCHEMA)


def parse_declaration(spec: Dict[str, Any]) -> SnapshotDeclaration:
    """
    Parse declared attributes into a SnapshotDeclaration.

    An absent, null or empty ``cron_timing`` selects a one-shot snapshot;
    any other value selects a recurring one.

    Raises:
        ValidationError: If the declaration does not match the schema.
    """
    is_valid, error_message = validate_declaration(spec)
    if not is_valid:
        logger.debug(f"Rejected snapshot declaration: {error_message}")
        raise ValidationError(f"Invalid snapshot declaration: {error_message}")

    cron_timing = spec.get("cron_timing")
    mode = Recurring(cron_timing) if cron_timing else OneShot()

    return SnapshotDeclaration(
        name=spec["name"],
        instance_id=spec["instance_id"],
        safe=spec.get("safe", False),
        mode=mode,
    )
