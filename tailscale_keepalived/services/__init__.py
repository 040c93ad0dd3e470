from threading import Event

from loguru import logger


class Service:
    """Runs ``on_loop`` over and over in the calling thread until stopped."""

    def __init__(self, interval: float = 1.0):
        self.interval = interval
        self._event = Event()

    def on_loop(self):
        pass

    def run(self):
        while not self._event.is_set():
            try:
                self.on_loop()
            except Exception as e:  # pylint: disable=W0718
                logger.exception(
                    f"{self.__class__.__name__} unexpected exception raised by on_loop {e}"
                )
            if not self._event.is_set():
                self.sleep(self.interval)
        self._stop()

    def on_stop(self):
        pass

    def _stop(self):
        try:
            self.on_stop()
        except Exception as e:  # pylint: disable=W0718
            logger.error(f"{self.__class__.__name__} unexpected exception raised by on_stop: {e}")

    def stop(self):
        """Stop the loop, can be called from a signal handler or another thread."""
        self._event.set()

    def sleep(self, timeout: float):
        self._event.wait(timeout)

    @property
    def is_running(self) -> bool:
        return not self._event.is_set()
