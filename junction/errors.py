from __future__ import annotations


class PortDirectionError(ValueError):
    """
    Raised by the port direction assertions when a port faces the wrong way.
    """


class UnknownNodeTypeError(KeyError):
    """
    Raised when a node type is required but not registered.
    """

    def __init__(self, node_type: str) -> None:
        super().__init__(node_type)
        self.node_type = node_type

    def __str__(self) -> str:
        return f"Unknown node type: {self.node_type!r}"
