"""Carrier response interpreter interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict

from ..models import DispatchOutcome


class CarrierResponseInterpreter(ABC):
    """Turns a carrier's parsed JSON reply into a DispatchOutcome."""

    @abstractmethod
    def interpret(self, http_status: int, body: Dict[str, Any]) -> DispatchOutcome:
        """
        Classify a reply whose body parsed as a JSON object.

        Must not raise; anything unexpected is a business failure.
        """
        raise NotImplementedError
