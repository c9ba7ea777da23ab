"""Infrastructure layer — database, repositories, payment and notification adapters.

This layer depends on stdlib and third-party libs (SQLAlchemy, structlog).
Repositories translate between table rows and the frozen domain snapshots,
so nothing outside this package sees a row.
"""
