from abc import ABC, abstractmethod
from datetime import date

from tollsync.jobs.ingest.types import FetchOutcome


class BaseSource(ABC):
    name: str

    @abstractmethod
    def fetch_for_date(self, day: date) -> FetchOutcome:
        """
        Fetch one date's raw records. Must not raise for upstream problems;
        those come back as Failure.
        """
        raise NotImplementedError

    @abstractmethod
    def today(self) -> date:
        """Current date in the upstream's calendar."""
        raise NotImplementedError
