"""
Authorization model written to every benchmark store.

Types ``user``, ``group`` and ``report``; a group has ``member`` users
and ``subgroup`` groups, a report has ``reader`` users or groups.
"""

from __future__ import annotations

import copy
import json
from pathlib import Path
from typing import Any

from fga_bench.errors import ConfigurationError

DEFAULT_AUTHORIZATION_MODEL: dict[str, Any] = {
    "schema_version": "1.1",
    "type_definitions": [
        {
            "type": "group",
            "relations": {
                "member": {"this": {}},
                "subgroup": {"this": {}},
            },
            "metadata": {
                "relations": {
                    "member": {"directly_related_user_types": [{"type": "user"}]},
                    "subgroup": {"directly_related_user_types": [{"type": "group"}]},
                }
            },
        },
        {
            "type": "report",
            "relations": {
                "reader": {"this": {}},
            },
            "metadata": {
                "relations": {
                    "reader": {
                        "directly_related_user_types": [{"type": "group"}, {"type": "user"}]
                    },
                }
            },
        },
        {"type": "user"},
    ],
}


def load_authorization_model(path: str | Path | None = None) -> dict[str, Any]:
    """
    Return the model to write: the JSON file at ``path`` or the default.

    Raises:
        ConfigurationError: If the file cannot be read or is not a JSON
            object with ``type_definitions``.
    """
    if not path:
        return copy.deepcopy(DEFAULT_AUTHORIZATION_MODEL)

    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            model = json.load(handle)
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Could not load authorization model from {path}: {exc}") from exc

    if not isinstance(model, dict) or "type_definitions" not in model:
        raise ConfigurationError(f"Authorization model at {path} has no type_definitions")
    return model
