from flask import request


def _int_arg(name: str, default: int) -> int:
    try:
        return int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default


def page_limit(default_size: int = 20, max_size: int = 100):
    """(page, size) from ?page&size; page >= 1, size clamped to 1..max_size."""
    page = max(_int_arg("page", 1), 1)
    size = max(1, min(_int_arg("size", default_size), max_size))
    return page, size
