"""Apply a change locally, confirm it remotely, revert it if the remote says no."""
import logging
from enum import Enum
from typing import Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Outcome(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ROLLED_BACK = "rolled_back"


class Optimistic(Generic[T]):
    def __init__(self, value: T):
        self.value = value
        self.outcome = Outcome.CONFIRMED

    @property
    def pending(self) -> bool:
        return self.outcome is Outcome.PENDING

    async def apply(self, new_value: T, commit: Callable[[], Awaitable[bool]]) -> Outcome:
        """Set ``new_value`` now and keep it only if ``commit`` reports success.

        A call made while another commit is in flight is ignored and reports
        PENDING, so a late failure can never revert a newer value.
        """
        if self.pending:
            return Outcome.PENDING
        previous = self.value
        self.value = new_value
        self.outcome = Outcome.PENDING
        try:
            ok = await commit()
        except BaseException:
            self.value = previous
            self.outcome = Outcome.ROLLED_BACK
            raise
        if ok:
            self.outcome = Outcome.CONFIRMED
        else:
            logger.debug("Rolled back optimistic change %r -> %r", previous, new_value)
            self.value = previous
            self.outcome = Outcome.ROLLED_BACK
        return self.outcome
