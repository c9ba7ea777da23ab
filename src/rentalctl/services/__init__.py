"""Service layer — use cases orchestrating entities, repositories and collaborators.

INVARIANT: All public service methods return ServiceResult.
"""
