"""
Task API package.

A FastAPI service for managing tasks backed by a SQLAlchemy-mapped table.
Build the application with `task_api.main.create_app`; run it with the
`task-api` console script or `python -m task_api`.
"""

__version__ = "1.0.0"
