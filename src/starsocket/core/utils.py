import inspect
from typing import Any


async def maybe_await(value: Any) -> Any:
    "Await `value` if it is awaitable, otherwise return it unchanged"
    if inspect.isawaitable(value):
        return await value
    return value


def is_empty_payload(value: Any) -> bool:
    "Payloads that bypass coercion entirely: None and the empty string"
    return value is None or (isinstance(value, str) and value == "")
