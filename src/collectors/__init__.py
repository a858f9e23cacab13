"""Job board collectors, one per applicant tracking system."""
from src.persistence.models import Source

from .ashby_collector import AshbyCollector
from .base import BaseCollector, NormalizedPosting
from .greenhouse_collector import GreenhouseCollector
from .lever_collector import LeverCollector

COLLECTORS: dict[Source, type[BaseCollector]] = {
    Source.GREENHOUSE: GreenhouseCollector,
    Source.LEVER: LeverCollector,
    Source.ASHBY: AshbyCollector,
}


def collector_for(source: Source | str, **kwargs) -> BaseCollector:
    """Instantiate the collector registered for a source.

    Raises:
        ValueError: if the source is not a known ATS
    """
    return COLLECTORS[Source(source)](**kwargs)


__all__ = [
    "BaseCollector",
    "NormalizedPosting",
    "GreenhouseCollector",
    "LeverCollector",
    "AshbyCollector",
    "COLLECTORS",
    "collector_for",
]
