"""
Pydantic models package.

- base.py: Strict request/response base classes
- catalog.py: Activity catalog views and completion responses
- tracking.py: Activity logging, preferences, recommendations, analytics
"""

from studyhub.models.base import StrictRequest, StrictResponse

__all__ = ["StrictRequest", "StrictResponse"]
