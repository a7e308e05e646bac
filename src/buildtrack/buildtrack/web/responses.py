from __future__ import annotations

from typing import Any, Optional

from flask import jsonify

from ..common.pagination import Page
from ..common.serialization import serialize


def ok(data: Any = None, *, status: int = 200, message: Optional[str] = None):
    body: dict = {"success": True}
    if data is not None:
        body["data"] = serialize(data)
        if isinstance(data, (list, tuple)):
            body["count"] = len(data)
    if message:
        body["message"] = message
    return jsonify(body), status


def ok_page(page: Page, items: Any = None):
    data = serialize(items if items is not None else list(page.items))
    return jsonify({"success": True, "data": data, "count": len(data), "pagination": page.meta()}), 200


def error(message: str, status: int):
    return jsonify({"success": False, "error": {"message": message, "statusCode": status}}), status
