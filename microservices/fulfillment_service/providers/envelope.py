"""Default carrier interpreter: the {code, state, data.package_id} envelope."""

import json
from typing import Any, Dict, Optional

from ..models import DispatchOutcome
from .base import CarrierResponseInterpreter


def _error_text(http_status: int, body: Dict[str, Any]) -> str:
    message = body.get("message")
    if isinstance(message, str) and message.strip():
        return message
    errors = body.get("errors")
    if errors:
        return json.dumps(errors, ensure_ascii=False, default=str)
    return f"API returned status {http_status}"


def _external_id(body: Dict[str, Any]) -> Optional[str]:
    data = body.get("data")
    if not isinstance(data, dict):
        return None
    package_id = data.get("package_id")
    return str(package_id) if package_id is not None else None


class EnvelopeResponseInterpreter(CarrierResponseInterpreter):
    """Success only when HTTP is 2xx, code == 200 and state == "success"."""

    def interpret(self, http_status: int, body: Dict[str, Any]) -> DispatchOutcome:
        http_ok = 200 <= http_status < 300
        code = body.get("code")
        if http_ok and code == 200 and not isinstance(code, bool) and body.get("state") == "success":
            return DispatchOutcome.success(_external_id(body), http_status=http_status)
        return DispatchOutcome.business_failure(_error_text(http_status, body), http_status=http_status)
