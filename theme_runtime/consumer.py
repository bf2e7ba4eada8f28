"""Applies the winning festival theme and manages its notification badge."""
import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Optional

from festivals.models import ResolvedEvent, Schedule
from storage.preferences import KeyValueStore
from theme_runtime.artifact_client import ArtifactClient
from theme_runtime.selector import NO_THEME, NONE_THEME, ThemeSelection, select_winner

logger = logging.getLogger(__name__)


class ThemeTarget(ABC):
    """Page-side collaborator that displays the theme and badge."""

    @abstractmethod
    def apply_theme(self, theme_id: str, level: str) -> None:
        """Expose the theme id and level for styling."""

    @abstractmethod
    def show_badge(self, event: ResolvedEvent) -> None:
        """Render the dismissible notification for *event*."""

    @abstractmethod
    def hide_badge(self) -> None:
        """Remove the notification if it is shown."""


class ThemeConsumer:
    """
    Runtime consumer of the resolved schedule.

    The winner is always computed; the festival preference only controls
    whether it is displayed, so turning the preference back on needs no
    new fetch. Dismissal remembers a single event id: dismissing one event
    never hides the badge of a different winner.
    """

    FESTIVAL_ENABLED_KEY = 'festivalEnabled'
    DISMISSED_KEY = 'festivalBadgeDismissed'

    def __init__(self, store: KeyValueStore, target: ThemeTarget):
        """
        Initialize the consumer.

        Args:
            store: Persisted key-value store for preferences
            target: Page collaborator receiving theme and badge updates
        """
        self.store = store
        self.target = target
        self.selection: ThemeSelection = NO_THEME

    def load(self, schedule: Optional[Schedule], today: Optional[date] = None) -> ThemeSelection:
        """
        Select the winner for today and update the page.

        Args:
            schedule: Parsed schedule, or None if loading it failed
            today: Day being evaluated (default: the local current date)

        Returns:
            The computed winner, regardless of the preference
        """
        self.selection = select_winner(schedule, today)
        logger.info(
            f"Festival winner: {self.selection.event_id or NONE_THEME} "
            f"({self.selection.theme_id}/{self.selection.level})"
        )
        self.render()
        return self.selection

    def load_from(self, client: ArtifactClient, today: Optional[date] = None) -> ThemeSelection:
        """Fetch the artifact with *client* and load it."""
        return self.load(client.fetch(), today)

    @property
    def festival_enabled(self) -> bool:
        return self.store.get(self.FESTIVAL_ENABLED_KEY) != 'false'

    def set_festival_enabled(self, enabled: bool) -> None:
        """Persist the festival preference and re-render."""
        self.store.set(self.FESTIVAL_ENABLED_KEY, 'true' if enabled else 'false')
        self.render()

    @property
    def applied_theme(self) -> ThemeSelection:
        """Theme actually displayed, after the preference is applied."""
        if not self.festival_enabled:
            return NO_THEME
        return self.selection

    @property
    def badge_visible(self) -> bool:
        applied = self.applied_theme
        if applied.theme_id == NONE_THEME or applied.event is None:
            return False
        return self.store.get(self.DISMISSED_KEY) != applied.event.id

    def dismiss_badge(self) -> None:
        """Remember the current winner as dismissed and hide its badge."""
        if self.selection.event is None:
            return
        self.store.set(self.DISMISSED_KEY, self.selection.event.id)
        self.target.hide_badge()

    def render(self) -> None:
        applied = self.applied_theme
        self.target.apply_theme(applied.theme_id, applied.level)
        if self.badge_visible:
            self.target.show_badge(applied.event)
        else:
            self.target.hide_badge()
