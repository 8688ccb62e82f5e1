"""Base formatter interface for site report output."""

from abc import ABC, abstractmethod

from ..report import SiteReport


class BaseFormatter(ABC):
    """Abstract base class for output formatters."""

    @abstractmethod
    def render(self, report: SiteReport) -> None:
        """Render the report to the terminal."""

    @abstractmethod
    def format(self, report: SiteReport) -> str:
        """Return the report as a string. Equal reports give equal strings."""
