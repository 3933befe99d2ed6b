"""Exporter interface: where journal output (statuses, reflections, stats) is rendered."""

from __future__ import annotations

from abc import ABC, abstractmethod

from revo.config import RevoConfig
from revo.models import DashboardStats, PublicReflection, Reflection, WeekDetail, WeekHistoryEntry
from revo.status import SummaryStatus


class Exporter(ABC):
    """Renders journal results. Each method receives the loaded config for display options."""

    @abstractmethod
    def export_status(self, status: SummaryStatus, config: RevoConfig) -> None:
        """Export a weekly or monthly summary status (and its record, if any)."""
        ...

    @abstractmethod
    def export_reflections(self, reflections: list[Reflection], config: RevoConfig) -> None:
        ...

    @abstractmethod
    def export_reflection(self, reflection: Reflection, config: RevoConfig) -> None:
        ...

    @abstractmethod
    def export_public(self, reflections: list[PublicReflection], config: RevoConfig) -> None:
        ...

    @abstractmethod
    def export_stats(self, stats: DashboardStats, config: RevoConfig) -> None:
        ...

    @abstractmethod
    def export_history(self, entries: list[WeekHistoryEntry], config: RevoConfig) -> None:
        ...

    @abstractmethod
    def export_week(self, detail: WeekDetail, config: RevoConfig) -> None:
        ...
