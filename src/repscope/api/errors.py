"""Mapping of domain errors to HTTP errors."""

from typing import NoReturn

from fastapi import HTTPException

from repscope.core.exceptions import (
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    PersistenceError,
    RepscopeError,
)


def status_for(error: RepscopeError) -> int:
    if isinstance(error, NotFoundError):
        return 404
    if isinstance(error, InvalidRequestError):
        return 400
    if isinstance(error, ConflictError):
        return 409
    if isinstance(error, PersistenceError):
        return 503
    return 500


def raise_http(error: RepscopeError) -> NoReturn:
    raise HTTPException(status_code=status_for(error), detail=error.message) from error
