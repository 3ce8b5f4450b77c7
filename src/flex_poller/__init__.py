"""flex_poller - cursor-based event poller for the Flex Integration API."""

__version__ = "0.1.0"
