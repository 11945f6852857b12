from flask import jsonify


def ok(data=None, status=200, **meta):
    """{"success": true, "data": ...}; keyword args (paging, warnings) go under "meta"."""
    payload = {"success": True, "data": data}
    if meta:
        payload["meta"] = meta
    return jsonify(payload), status


def fail(message="Bad Request", status=400, code=None, detail=None):
    err = {"message": message}
    if code:
        err["code"] = code
    if detail:
        err["detail"] = detail
    return jsonify({"success": False, "error": err}), status
