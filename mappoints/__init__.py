"""
Map Points API: Application Package
======================================

What: HTTP service that stores and lists geographic points.

Architecture Note:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (Validator, PointStore)  │  ← Rules and persistence
    ├─────────────────────────────────────┤
    │       Models & Schemas (Data)       │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │        Database (Persistence)       │  ← Shared async engine
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
