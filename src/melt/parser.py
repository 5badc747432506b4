"""Policy file loader.

A policy file is a JSON document holding static host names and, for each
protected host, its default policy and ordered list of intents. It is parsed
into a validated PolicyConfig.
"""

import json
from pathlib import Path

from pydantic import ValidationError

from melt.models import PolicyConfig


def load_policy(path: str | Path) -> PolicyConfig:
    """Read and validate a policy file.

    Args:
        path: Path to the JSON policy file

    Returns:
        PolicyConfig: Validated policy

    Raises:
        FileNotFoundError: If the policy file does not exist
        ValueError: If the file is not valid JSON or fails validation
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Policy file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    try:
        return PolicyConfig.model_validate(data)
    except ValidationError as e:
        raise ValueError(f"Validation error in {path}: {e}") from e
