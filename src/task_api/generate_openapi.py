"""
Utility script to generate and write the OpenAPI schema for the Task API.

The schema is written to interfaces/openapi.json under the project root so
that API clients and documentation tools can consume it without running the
server.

Usage:
    python -m task_api.generate_openapi [OUTPUT_PATH]
"""
from __future__ import annotations

import json
import os
import sys
from typing import Any, Dict, List, Optional

from loguru import logger

from .main import create_app, openapi_tags
from .repositories import InMemoryRepository

# <project root>/interfaces/openapi.json, two levels above this package (src/task_api)
DEFAULT_OUTPUT = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
    "interfaces",
    "openapi.json",
)


def _ensure_tags(schema: Dict[str, Any]) -> None:
    """
    Make sure every tag from openapi_tags is present in the schema, without
    overriding tag definitions that already exist.
    """
    existing_tags: List[Dict[str, Any]] = schema.get("tags", []) or []
    existing_names = {t.get("name") for t in existing_tags if isinstance(t, dict)}
    for tag in openapi_tags:
        if tag.get("name") not in existing_names:
            existing_tags.append(tag)
    if existing_tags:
        schema["tags"] = existing_tags


# PUBLIC_INTERFACE
def generate_openapi(out_path: Optional[str] = None) -> str:
    """Write the OpenAPI schema file and return its path."""
    out_path = out_path or DEFAULT_OUTPUT
    # The schema does not depend on the storage backend
    schema = create_app(repository=InMemoryRepository()).openapi()
    _ensure_tags(schema)

    os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(schema, f, indent=2, ensure_ascii=False)
    logger.info("Wrote OpenAPI schema to: {}", out_path)
    return out_path


if __name__ == "__main__":
    generate_openapi(sys.argv[1] if len(sys.argv) > 1 else None)
