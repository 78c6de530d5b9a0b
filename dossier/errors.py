"""Error taxonomy shared by the datastore, the provenance components and the API.

Each error tells the caller whether the input was at fault (fix and resubmit)
or the system could not complete the request (retry later).
"""

from __future__ import annotations


class DossierError(Exception):
    """Base class for every failure surfaced to a caller."""

    kind = "error"
    status_code = 500
    retryable = False

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(DossierError):
    """Missing or blank mandatory field, malformed URL, bad enum value, extract/source mismatch."""

    kind = "validation"
    status_code = 400


class ReferentialError(DossierError):
    """The operation targets a project, round, source or extract that does not exist."""

    kind = "not_found"
    status_code = 404


class NotFoundOnDelete(DossierError):
    """A delete matched zero rows; the target was already gone."""

    kind = "not-found"
    status_code = 404


class ConflictError(DossierError):
    """A uniqueness constraint rejected the write."""

    kind = "conflict"
    status_code = 409


class StorageFailure(DossierError):
    """The datastore was unreachable or rejected the query for infrastructural reasons."""

    kind = "storage"
    status_code = 503
    retryable = True
