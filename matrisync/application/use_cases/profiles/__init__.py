"""Profile summary lookups shared by the feed and the conversation store."""

from .profile_fetcher import PROFILES_COLLECTION, ProfileFetcher

__all__ = ["PROFILES_COLLECTION", "ProfileFetcher"]
