"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- storage: Object storage (R2, in-memory)
- albumizr: Album page scraping for gallery migration
"""
