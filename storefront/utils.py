import math
from enum import Enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Union

def page_info(total: int, offset: int, limit: int) -> Dict[str, Any]:
    """Offset/limit pagination metadata shared by list endpoints"""
    return {
        "total": total,
        "page": (offset // limit) + 1,
        "total_pages": math.ceil(total / limit),
        "limit": limit
    }

def as_float(value: Optional[Union[Decimal, int, float]]) -> Optional[float]:
    return float(value) if value is not None else None

def as_iso(value: Optional[Union[datetime, date]]) -> Optional[str]:
    return value.isoformat() if value is not None else None

def plain_values(data: Dict[str, Any]) -> Dict[str, Any]:
    """Replace enum members by their values before assigning to ORM columns"""
    return {key: (value.value if isinstance(value, Enum) else value) for key, value in data.items()}

def reject_nulls(data: Dict[str, Any], required: Tuple[str, ...]) -> None:
    """Partial updates may omit required fields but never clear them"""
    for field in required:
        if field in data and data[field] is None:
            raise ValueError(f"{field} cannot be null")
