"""
Service layer.

- catalog_service: Activity catalog browsing and subtopic completion
- recommendation: Activity tracking, analytics and recommendations
"""
