"""Code Flow exception types."""


class CodeFlowError(Exception):
    """Base class for errors raised by this package."""


class PuzzleInvariantError(CodeFlowError, AssertionError):
    """Raised when generation produces a tile no rotation can satisfy."""

    def __init__(self, tile_type, target_connections):
        self.tile_type = tile_type
        self.target_connections = target_connections
        names = ", ".join(d.value for d in target_connections)
        super().__init__(
            f"No rotation of {tile_type.value} tile matches connections [{names}]"
        )


class SnapshotError(CodeFlowError):
    """Raised when a persisted snapshot cannot be decoded."""

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Snapshot {key} is unreadable: {reason}")


class NoActivePuzzleError(CodeFlowError):
    """Raised when a puzzle operation arrives with no puzzle open."""

    def __init__(self):
        super().__init__("No puzzle is open")


class PuzzleNotSolvedError(CodeFlowError):
    """Raised when completion is requested for an unsolved puzzle."""

    def __init__(self, ticket_id: str):
        self.ticket_id = ticket_id
        super().__init__(f"Puzzle for {ticket_id} is not solved")
