# file: app/runner.py
import asyncio
import logging

log = logging.getLogger("ui")


class LoopRunner:
    """
    Drives coroutines from synchronous Streamlit callbacks on one event loop.

    The Gemini client pools async HTTP connections bound to the loop that
    opened them, so every call for a session has to run on the same loop.
    """

    def __init__(self):
        self.loop = asyncio.new_event_loop()

    def run(self, coro):
        if self.loop.is_closed():
            log.warning("event loop was closed; starting a new one")
            self.loop = asyncio.new_event_loop()
        return self.loop.run_until_complete(coro)

    def close(self) -> None:
        if not self.loop.is_closed():
            self.loop.close()
