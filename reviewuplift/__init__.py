# ReviewUplift - Review Collection & Review Gating Platform
# ==========================================================
# Multi-tenant review management using Layered Architecture:
#
# ARCHITECTURE LAYERS:
# - Presentation:   FastAPI web dashboard, visitor review page, admin console
# - Domain:         Pure business logic (link configuration, gating, feedback)
# - Infrastructure: External services (identity, payments, SQLite, state token)
#
# Identity and payments sit behind provider interfaces so the hosted
# services can be swapped without touching the domain layer.

__version__ = "0.4.0"


class ReviewUpliftError(Exception):
    """Base exception for all ReviewUplift errors."""
    pass
