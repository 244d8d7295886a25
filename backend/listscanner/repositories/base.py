"""
List Scanner Backend — Repository Base
=======================================

Every repository method returns a Result and lets no raw exception escape.
`_guard()` runs one store operation and translates whatever it raises:

    ListScannerError  → Failure(error)           (already classified)
    anything else     → Failure(DatabaseError)   (cause chained, logged)
"""

import logging
from typing import Any, Awaitable, Callable, TypeVar

from listscanner.exceptions import DatabaseError, ListScannerError
from listscanner.result import Failure, Result, Success

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BaseRepository:
    async def _guard(
        self,
        action: str,
        operation: Callable[[], Awaitable[T]],
        **context: Any,
    ) -> Result[T]:
        try:
            return Success(await operation())
        except ListScannerError as e:
            logger.warning("%s failed: %s", action, e.message)
            return Failure.from_error(e)
        except Exception as e:
            logger.error(
                "%s failed (%s): %s",
                action,
                context,
                type(e).__name__,
                exc_info=True,
            )
            error = DatabaseError(
                message=f"Could not {action}. Please try again.",
                context={**context, "error_type": type(e).__name__},
            )
            error.__cause__ = e
            return Failure.from_error(error)
