"""Shared helpers for API routes."""

from fastapi import HTTPException, status

from services.planner_store import FORBIDDEN, NOT_FOUND, STORAGE, VALIDATION, MutationResult

_STATUS_BY_CODE = {
    VALIDATION: status.HTTP_400_BAD_REQUEST,
    NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FORBIDDEN: status.HTTP_403_FORBIDDEN,
    STORAGE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_for_result(result: MutationResult) -> MutationResult:
    """Turn a failed store result into the matching HTTP error."""
    if not result.ok:
        raise HTTPException(
            status_code=_STATUS_BY_CODE.get(result.code, status.HTTP_500_INTERNAL_SERVER_ERROR),
            detail=result.error,
        )
    return result
