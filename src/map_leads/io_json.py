"""JSON state snapshot helpers used by the CLI."""

from __future__ import annotations

import json
from pathlib import Path

from .errors import ConfigError
from .store import InMemoryDocumentStore, InMemoryIdentityDirectory

STATE_KEYS = ("collections", "identities")


def load_state(path: str) -> tuple[InMemoryDocumentStore, InMemoryIdentityDirectory]:
    """Load a store and identity directory from a JSON file (empty when absent)."""
    state_path = Path(path)
    if not state_path.exists():
        return InMemoryDocumentStore(), InMemoryIdentityDirectory()
    try:
        payload = json.loads(state_path.read_text(encoding="utf-8") or "{}")
    except json.JSONDecodeError as exc:
        raise ConfigError(f"State file {path} is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"State file {path} must contain a JSON object.")
    for key in STATE_KEYS:
        if not isinstance(payload.get(key) or {}, dict):
            raise ConfigError(f"State file {path}: '{key}' must be a JSON object.")
    return (
        InMemoryDocumentStore(payload.get("collections") or {}),
        InMemoryIdentityDirectory(payload.get("identities") or {}),
    )


def save_state(
    path: str, store: InMemoryDocumentStore, identities: InMemoryIdentityDirectory
) -> None:
    """Write the full state back with a stable key order."""
    payload = {"collections": store.snapshot(), "identities": identities.snapshot()}
    output_path = Path(path)
    with output_path.open("w", encoding="utf-8") as file_obj:
        json.dump(payload, file_obj, indent=2, sort_keys=True, default=str)
        file_obj.write("\n")
