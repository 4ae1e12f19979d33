"""
Common/Shared Fixtures

Base ID generators and timestamps used across test layers.
"""
import uuid
from datetime import datetime, timezone


def make_user_id() -> str:
    """Generate a unique user ID"""
    return f"usr_test_{uuid.uuid4().hex[:12]}"


def make_order_id() -> str:
    """Generate a unique order ID"""
    return str(uuid.uuid4())


def make_order_number(suffix: int = 1001) -> str:
    """Order number in the ORD-YYYYMMDD-NNNN shape"""
    return f"ORD-{datetime.now(timezone.utc):%Y%m%d}-{suffix:04d}"


def make_timestamp() -> datetime:
    """Current UTC timestamp"""
    return datetime.now(timezone.utc)
