from .database import (
    Database,
    init_database,
    User,
    Business,
    Review,
    Location,
    Credential,
    UserRole,
    AccountStatus,
    ReviewSource,
    REVIEW_FILTERS,
)

__all__ = [
    "Database",
    "init_database",
    "User",
    "Business",
    "Review",
    "Location",
    "Credential",
    "UserRole",
    "AccountStatus",
    "ReviewSource",
    "REVIEW_FILTERS",
]
