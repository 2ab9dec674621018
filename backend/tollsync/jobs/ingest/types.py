from dataclasses import dataclass, field
from typing import Union

from tollsync.core.errors import FetchError


@dataclass(frozen=True)
class Records:
    # confirmed data for the date; may be empty
    items: list = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class Empty:
    # "too_recent", "no_content", "empty_body" or "malformed"
    reason: str = "no_data"


@dataclass(frozen=True)
class Failure:
    error: FetchError


# Empty is a confirmed "no data" answer, Failure means the date could not be read.
FetchOutcome = Union[Records, Empty, Failure]
