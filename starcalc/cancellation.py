import threading


class CalculationCancelled(Exception):
    """Raised when a calculation notices that it has been cancelled.
    """


class CancellationToken:
    """A flag which lets one thread ask a running calculation to stop.

    Calculations poll the token between units of work, so cancelling does
    not interrupt a unit that is already running.
    """
    def __init__(self):
        self._event = threading.Event()

    @property
    def cancelled(self):
        return self._event.is_set()

    def cancel(self):
        self._event.set()

    def raise_if_cancelled(self):
        """Raise :class:`CalculationCancelled` if this token was cancelled.
        """
        if self._event.is_set():
            raise CalculationCancelled()

    def __repr__(self):
        state = 'cancelled' if self.cancelled else 'active'
        return f'<{type(self).__qualname__}: {state}>'


def check_cancelled(token):
    """Poll an optional token.

    Parameters
    ----------
    token : CancellationToken or None
        The token to poll. ``None`` is never cancelled.

    Raises
    ------
    CalculationCancelled
        Raised when ``token`` has been cancelled.
    """
    if token is not None:
        token.raise_if_cancelled()
