from __future__ import annotations

from abc import ABC, abstractmethod

from slpsupply.core.models import DecodedPayload


class PayloadDecoderPort(ABC):
    @abstractmethod
    def decode(self, script: bytes) -> DecodedPayload:
        """Raise DecodeError for anything that is not a recognized token payload."""
        raise NotImplementedError
