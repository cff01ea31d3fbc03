"""Router configuration.

RouterConfig is a frozen dataclass: immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RouterConfig:
    """Table-wide routing configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = RouterConfig(trailing_slash=True, debug=True)
    """

    # Reject routes sharing (method, host, path shape) at build time.
    # Duplicate names are rejected regardless.
    conflict_detection: bool = True

    # Also accept each path with exactly one trailing "/" appended
    trailing_slash: bool = False

    # Upper bound (seconds) for a single counter store call
    throttle_timeout: float = 0.25

    # Include exception messages in rendered 500 responses
    debug: bool = False
