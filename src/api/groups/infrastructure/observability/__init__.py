"""Domain probes for groups infrastructure adapters."""

from groups.infrastructure.observability.appwrite_probe import (
    AppwriteProbe,
    DefaultAppwriteProbe,
)

__all__ = ["AppwriteProbe", "DefaultAppwriteProbe"]
