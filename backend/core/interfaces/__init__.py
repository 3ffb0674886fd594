# Interfaces (Abstract Contracts)
# Infrastructure and test fakes implement these interfaces
from .repositories import (
    CategoryRepository,
    CompetitorRepository,
    ProfileRepository,
    RepositoryError,
    TaskRepository,
)

__all__ = [
    "RepositoryError",
    "TaskRepository",
    "ProfileRepository",
    "CompetitorRepository",
    "CategoryRepository",
]
