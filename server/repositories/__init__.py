"""Repository layer for data access."""

from server.repositories.user_repository import UserRepository
from server.repositories.subscription_repository import SubscriptionRepository
from server.repositories.ownership_repository import OwnershipRepository
from server.repositories.favorite_repository import FavoriteRepository

__all__ = [
    "UserRepository",
    "SubscriptionRepository",
    "OwnershipRepository",
    "FavoriteRepository",
]
