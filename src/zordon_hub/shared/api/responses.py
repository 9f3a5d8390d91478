"""
Response envelope shared by every REST endpoint.
"""

from typing import Any

from fastapi.encoders import jsonable_encoder


def ok(data: Any = None, message: str = "OK") -> dict:
    """``{success, message, data}`` wrapper for successful calls."""
    return {"success": True, "message": message, "data": jsonable_encoder(data)}
