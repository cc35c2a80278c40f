"""Custom exceptions for ticket and pull request sources."""


class TicketSourceError(Exception):
    """Base exception for ticket tracker errors."""


class BoardNotFoundError(TicketSourceError):
    """Board with given ID does not exist or is not accessible."""


class PullRequestError(Exception):
    """Base exception for code review errors."""


class InvalidPullRequestUrlError(PullRequestError):
    """URL does not point at a pull request."""
