import logging
import signal

log = logging.getLogger(__name__)


class CtrlCHandler:
    """
    Handle Ctrl+C so sensor threads, audio output and the dial window
    are released before the process exits.
    """
    def __init__(self, on_stop=None):
        self.should_stop = False
        self._on_stop = on_stop
        signal.signal(signal.SIGINT, self._signal_handler)

    def _signal_handler(self, sig, frame):
        """Callback executed when Ctrl+C is detected"""
        log.info("Interrupt signal detected, closing compass session...")
        self.should_stop = True
        if self._on_stop is not None:
            self._on_stop()
