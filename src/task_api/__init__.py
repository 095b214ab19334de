"""
Task API package.

A single-resource Task CRUD service: entities and validation, the filter
parser, use cases, repository backends and the FastAPI surface. Serve it
with `python -m task_api` or `uvicorn task_api.main:app`.
"""

__version__ = "0.1.0"
