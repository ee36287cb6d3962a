"""
Abstract base classes shared by loaders.
"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

from core.volume import Volume


class BaseLoader(ABC):
    """Abstract base class for volume acquisition strategies."""

    @abstractmethod
    def load(self, source, callback: Optional[Callable[[int, str], None]] = None) -> Volume:
        """
        Load a volume from a source.

        Args:
            source: Path, bytes or generator parameters, depending on the loader.
            callback: Optional progress callback (percent, message).

        Returns:
            Volume: Loaded, normalized volume.
        """
        pass
