"""Poll loop and its retry policy."""

from flex_poller.poller.loop import EventPollLoop, interruptible_sleep
from flex_poller.poller.retry import RetryPolicy

__all__ = ["EventPollLoop", "RetryPolicy", "interruptible_sleep"]
