"""
Utility script to generate and write the OpenAPI schema for the task API.

This script builds the FastAPI application (with an in-memory repository, so no
database is touched) and serializes its OpenAPI schema to interfaces/openapi.json
so that API clients and documentation tools can consume a stable schema without
running the server.

Usage:
    python -m task_api.generate_openapi

Notes:
- The script ensures the 'tasks' and 'health' tags are present in the OpenAPI tags metadata.
- Output file path is relative to the repository root: interfaces/openapi.json
"""
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Optional

from .main import create_app, openapi_tags
from .repositories import InMemoryRepository

logger = logging.getLogger(__name__)


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Ensure the OpenAPI schema contains the expected tags metadata. This does not
    override existing tag definitions unless missing.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


def _default_out_path() -> str:
    # <repo_root>/src/task_api/generate_openapi.py -> <repo_root>/interfaces/openapi.json
    src_dir = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    repo_root = os.path.dirname(src_dir)
    return os.path.join(repo_root, "interfaces", "openapi.json")


# PUBLIC_INTERFACE
def generate_openapi(out_path: Optional[str] = None) -> str:
    """
    Generate the OpenAPI schema and write it to `out_path` (default
    interfaces/openapi.json), creating directories as needed.

    Returns:
        The path of the written file.
    """
    app = create_app(repository=InMemoryRepository())
    schema = app.openapi()
    _ensure_tags(schema)

    path = out_path or _default_out_path()
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    logger.info("Wrote OpenAPI schema to %s", path)
    return path


def main() -> None:
    path = generate_openapi()
    print(f"Wrote OpenAPI schema to: {path}")


if __name__ == "__main__":
    main()
