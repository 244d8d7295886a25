"""
List Scanner Backend — Operation Result Type
=============================================

What:  `Success` / `Failure` result values returned by repositories and
       services instead of raising across their public contract.
How:   `Success.data` holds the produced value (possibly None, e.g. a point
       lookup of a missing id). `Failure.error` is a ListScannerError whose
       `__cause__` is the original low-level exception; `Failure.message`
       is the user-facing text.

Example:
    result = await item_repository.update_item_text(item_id, "oat milk")
    if isinstance(result, Failure):
        raise result.error
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from listscanner.exceptions import ListScannerError

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    data: T

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    error: ListScannerError
    message: str

    @property
    def is_success(self) -> bool:
        return False

    @property
    def cause(self) -> BaseException:
        """The low-level exception behind the failure (or the error itself)."""
        return self.error.__cause__ or self.error

    @classmethod
    def from_error(cls, error: ListScannerError) -> "Failure":
        return cls(error=error, message=error.message)


Result = Union[Success[T], Failure]


def unwrap(result: "Result[T]") -> T:
    """Return the success value or raise the failure's error."""
    if isinstance(result, Failure):
        raise result.error
    return result.data
