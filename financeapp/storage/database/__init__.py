"""SQLAlchemy declarative base and models."""
