"""Sharetribe Flex Integration API components."""

from flex_poller.flex.client import FlexIntegrationClient
from flex_poller.flex.feed import FlexEventFeed
from flex_poller.flex.listings import ListingLikesUpdater

__all__ = ["FlexIntegrationClient", "FlexEventFeed", "ListingLikesUpdater"]
