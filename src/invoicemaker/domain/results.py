"""Tagged success/failure values returned by backup operations."""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from invoicemaker.domain.errors import BackupError

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """Operation completed; ``value`` holds its product."""

    value: T

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Operation did not happen; ``error`` says why."""

    error: BackupError

    @property
    def is_success(self) -> bool:
        return False


Result = Union[Success[T], Failure]
