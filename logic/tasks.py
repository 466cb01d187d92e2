import logging
import threading
from typing import Any, Callable, Optional

from logic.errors import ApiError

logger = logging.getLogger(__name__)


def run_async(widget, fn: Callable[[], Any],
              on_done: Optional[Callable[[Any], None]] = None,
              on_error: Optional[Callable[[ApiError], None]] = None) -> threading.Thread:
    """Run a backend call off the Tk thread and deliver the result back on it.

    ApiError has already been shown to the user by the client, so it only
    reaches ``on_error``. Anything else is a bug and is re-raised on the Tk
    thread.
    """
    def worker():
        try:
            result = fn()
        except ApiError as e:
            if on_error:
                widget.after(0, lambda e=e: on_error(e))
            return
        except Exception as e:
            logger.exception("Background task failed")
            widget.after(0, lambda e=e: _reraise(e))
            return
        if on_done:
            widget.after(0, lambda: on_done(result))

    t = threading.Thread(target=worker, daemon=True)
    t.start()
    return t


def _reraise(exc: BaseException):
    raise exc
