"""Call sync or async handlers uniformly.

Route handlers can be ``def`` or ``async def``; the dispatcher awaits
the result only when the call produced an awaitable.
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable::

        def show_user(id: int):
            return {"id": id}

        async def list_users(request):
            return await load_users()
    """
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
