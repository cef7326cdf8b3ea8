"""Exception hierarchy shared by every layer."""


class RepriseError(Exception):
    """Base class for errors raised by reprise."""


class InvalidArgument(RepriseError, ValueError):
    """A caller broke an operation's contract (bad quality score, empty queue)."""


class InvalidAction(RepriseError):
    """A session action is not allowed in the session's current state."""


class PropertyWriteError(RepriseError):
    """The node store refused or failed to persist an item's properties.

    Recoverable: the session state is left exactly as it was before the action,
    so the same action can be retried.
    """


class NodeNotFoundError(RepriseError, KeyError):
    """No node with the requested id exists in the store."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return str(self.args[0]) if self.args else ""
