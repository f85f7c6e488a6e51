"""
Async helpers.

run_async() executes a coroutine from sync Streamlit code. Python 3.14
broke nest_asyncio + aiohttp compatibility because asyncio.current_task()
returns None in nested loops, and aiohttp's internal timer requires a
proper task context. So the coroutine runs in a separate thread with its
own event loop, and the Streamlit ScriptRunContext is propagated so
session_state and UI placeholders still work from the child thread.

gather_fail_fast() awaits a batch of coroutines and aborts the whole batch
on the first failure.
"""

import asyncio
import threading

from config.settings import get_setting


def _get_streamlit_ctx():
    """Get the current Streamlit ScriptRunContext (if running in Streamlit)."""
    try:
        from streamlit.runtime.scriptrunner import get_script_run_ctx
        return get_script_run_ctx()
    except ImportError:
        return None


def _set_streamlit_ctx(thread, ctx):
    """Attach a Streamlit ScriptRunContext to the given thread."""
    if ctx is None:
        return
    try:
        from streamlit.runtime.scriptrunner import add_script_run_ctx
        add_script_run_ctx(thread, ctx)
    except ImportError:
        pass


def run_async(coro, timeout: float | None = None):
    """Run a coroutine to completion in a fresh event loop on a new thread.

    Args:
        coro: The coroutine to run
        timeout: Seconds to wait (defaults to the ``run_timeout`` setting)

    Returns:
        The result of the coroutine

    Raises:
        TimeoutError: the coroutine did not finish in time
        Any exception raised by the coroutine
    """
    if timeout is None:
        timeout = get_setting("run_timeout")

    result = [None]
    error = [None]
    ctx = _get_streamlit_ctx()

    def _target():
        try:
            result[0] = asyncio.run(coro)
        except BaseException as e:
            error[0] = e

    thread = threading.Thread(target=_target, daemon=True)
    _set_streamlit_ctx(thread, ctx)
    thread.start()
    thread.join(timeout=timeout)

    if thread.is_alive():
        raise TimeoutError(f"Operation did not finish within {timeout}s")
    if error[0] is not None:
        raise error[0]
    return result[0]


async def gather_fail_fast(coros) -> list:
    """Run coroutines concurrently and return their results in order.

    The first exception cancels every task still running and is re-raised
    unchanged; no partial results are returned.
    """
    tasks = [asyncio.ensure_future(c) for c in coros]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
