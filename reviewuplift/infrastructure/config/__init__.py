from .settings import Settings, Plan, get_settings

__all__ = ["Settings", "Plan", "get_settings"]
