"""
Service Container - Dependency Injection Container

Simple DI container for managing service instances and their dependencies.
Uses lazy loading to only instantiate services when first accessed.
"""

from dataclasses import dataclass, field
from typing import Optional
import logging

from care_tracker.config import CUSTOM_CATEGORY_NAME
from care_tracker.utils.datetime_helpers import Clock, now_utc

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """
    Simple dependency injection container for services.

    Services are lazy-loaded on first access via properties and share the
    injected database handle and clock.
    """

    # Infrastructure dependencies (injected)
    db: object  # Database instance
    clock: Clock = now_utc
    custom_category_name: str = CUSTOM_CATEGORY_NAME

    # Services (lazy-loaded via properties)
    _subscription_service: Optional[object] = field(default=None, init=False, repr=False)
    _track_service: Optional[object] = field(default=None, init=False, repr=False)
    _custom_goal_service: Optional[object] = field(default=None, init=False, repr=False)

    @property
    def subscription_service(self):
        """Get SubscriptionService instance (lazy-loaded)"""
        if self._subscription_service is None:
            from care_tracker.services.subscription_service import SubscriptionService
            self._subscription_service = SubscriptionService(self.db, self.clock)
            logger.debug("SubscriptionService instantiated")
        return self._subscription_service

    @property
    def track_service(self):
        """Get TrackService instance (lazy-loaded)"""
        if self._track_service is None:
            from care_tracker.services.track_service import TrackService
            self._track_service = TrackService(
                self.db,
                subscription_service=self.subscription_service,
                clock=self.clock,
                custom_category_name=self.custom_category_name
            )
            logger.debug("TrackService instantiated")
        return self._track_service

    @property
    def custom_goal_service(self):
        """Get CustomGoalService instance (lazy-loaded)"""
        if self._custom_goal_service is None:
            from care_tracker.services.custom_goal_service import CustomGoalService
            self._custom_goal_service = CustomGoalService(
                self.db,
                track_service=self.track_service,
                clock=self.clock,
                custom_category_name=self.custom_category_name
            )
            logger.debug("CustomGoalService instantiated")
        return self._custom_goal_service


# Global container instance (initialized by the entry points)
_container: Optional[ServiceContainer] = None


def get_container() -> ServiceContainer:
    """
    Get the global service container.

    Raises:
        RuntimeError: If container not initialized (call init_container first)
    """
    if _container is None:
        raise RuntimeError(
            "Service container not initialized. "
            "Call init_container() at startup before using services."
        )
    return _container


def init_container(db: object, clock: Optional[Clock] = None) -> ServiceContainer:
    """
    Initialize the global service container.

    Should be called once at startup after the database pool is ready.

    Args:
        db: Database instance
        clock: Optional timestamp provider

    Returns:
        ServiceContainer: The initialized container
    """
    global _container

    _container = ServiceContainer(db=db, clock=clock or now_utc)

    logger.info("Service container initialized")
    return _container
