from __future__ import annotations


class DomainError(Exception):
    """Base for errors raised at the task/event edge."""


class ValidationError(DomainError):
    pass


class NotFoundError(DomainError):
    pass


class ConflictError(DomainError):
    pass
