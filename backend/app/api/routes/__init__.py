"""Route modules for the Profile API."""
from . import auth, health, profile, uploads

__all__ = ["auth", "health", "profile", "uploads"]
