"""
Carrier response interpreters keyed by carrier name.

Carriers without a registered interpreter use the envelope rule.
"""

from typing import Dict, Optional

from .base import CarrierResponseInterpreter
from .envelope import EnvelopeResponseInterpreter

DEFAULT_INTERPRETER = EnvelopeResponseInterpreter()

_interpreters: Dict[str, CarrierResponseInterpreter] = {}


def _key(company_name: str) -> str:
    return (company_name or "").strip().casefold()


def register_interpreter(company_name: str, interpreter: CarrierResponseInterpreter) -> None:
    _interpreters[_key(company_name)] = interpreter


def unregister_interpreter(company_name: str) -> None:
    _interpreters.pop(_key(company_name), None)


def get_interpreter(company_name: Optional[str]) -> CarrierResponseInterpreter:
    return _interpreters.get(_key(company_name or ""), DEFAULT_INTERPRETER)


__all__ = [
    "CarrierResponseInterpreter",
    "EnvelopeResponseInterpreter",
    "DEFAULT_INTERPRETER",
    "register_interpreter",
    "unregister_interpreter",
    "get_interpreter",
]
