"""
Gallery Gateway - image storage edge gateway for the gallery widget.

This package contains the complete application:
- core: Framework-agnostic request handling (routing, validation, CORS)
- infrastructure: External service integrations (R2 storage, Albumizr)
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
