"""Error kinds raised by the result service.

Callers branch on the class (``except NotFoundError``), never on the message.
"""


class ResultServiceError(Exception):
    """Base class for all result service errors."""


class NotFoundError(ResultServiceError):
    """A requested entity does not exist."""


class AlreadyExistsError(ResultServiceError):
    """An idempotent collision: the entity or task is already there."""


class UnprocessableContentError(ResultServiceError):
    """A business rule rejected the request."""


class UpstreamError(ResultServiceError):
    """Transport failure of the provider, the scheduler or a webhook target."""


class DataIntegrityError(ResultServiceError):
    """A relation required by the lifecycle is unexpectedly absent."""


class MissingExternalLinkError(DataIntegrityError):
    """An alias's team has no external team, so it cannot be scheduled."""


def wrap(exc: ResultServiceError, context: str) -> ResultServiceError:
    """Return an error of the same kind as ``exc`` with ``context`` prepended."""
    wrapped = type(exc)(f"{context}: {exc}")
    wrapped.__cause__ = exc
    return wrapped
