"""
Service Layer Package

Business logic between the API layer and the database queries.

Services:
- SubscriptionService: Implicit subscription inference and entry materialization
- TrackService: Dated view, selectable items, questions, answers, links, summaries
- CustomGoalService: Patient-authored goals
"""

from care_tracker.services.container import ServiceContainer, get_container, init_container

__all__ = [
    "ServiceContainer",
    "get_container",
    "init_container",
]
