"""CLI command modules."""

from .analyze import analyze, department, departments, hiring, resource, training
from .database import db

__all__ = [
    "analyze",
    "department",
    "resource",
    "departments",
    "training",
    "hiring",
    "db",
]
