"""ORM models. Importing this package registers every table on Base.metadata."""

from database.models.applications import Application
from database.models.reviews import AIReview

__all__ = ["Application", "AIReview"]
