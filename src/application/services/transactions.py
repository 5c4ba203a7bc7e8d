from typing import Awaitable, Callable, TypeVar

from loguru import logger

from src.application.repositories import AbstractUnitOfWork
from src.domain.errors import ConsistencyError, ValidationError

T = TypeVar("T")

TRY_AGAIN_MESSAGE = "This parking was updated by another request at the same time. Please try again."


async def run_in_transaction(
    unit_of_work: AbstractUnitOfWork,
    operation: Callable[[], Awaitable[T]],
    conflict_field: str = "reservation",
    retries: int = 1,
) -> T:
    """Run ``operation`` and commit, rolling back on any error.

    A ConsistencyError means a concurrent writer won the race: the whole
    operation is replayed from its reads up to ``retries`` times, then
    reported as a "try again" validation error on ``conflict_field``.
    """
    attempt = 0
    while True:
        try:
            result = await operation()
            await unit_of_work.commit()
            return result
        except ConsistencyError as exc:
            await unit_of_work.rollback()
            if attempt >= retries:
                logger.warning(f"Giving up after {attempt + 1} attempts: {exc}")
                raise ValidationError(conflict_field, TRY_AGAIN_MESSAGE) from exc
            attempt += 1
            logger.debug(f"Write conflict ({exc}), retrying")
        except Exception:
            await unit_of_work.rollback()
            raise
