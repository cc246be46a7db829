from __future__ import annotations

from junction.errors import PortDirectionError
from junction.nodes.base import Port, PortDirection


def is_input_port(port: Port) -> bool:
    return port.direction == PortDirection.INPUT


def is_output_port(port: Port) -> bool:
    return port.direction == PortDirection.OUTPUT


def assert_input_port(port: Port) -> Port:
    """
    Return ``port`` unchanged, raising ``PortDirectionError`` unless it is an input.
    """

    if not is_input_port(port):
        raise PortDirectionError(f'Expected input port, got "{port.direction.value}" for port "{port.id}"')
    return port


def assert_output_port(port: Port) -> Port:
    """
    Return ``port`` unchanged, raising ``PortDirectionError`` unless it is an output.
    """

    if not is_output_port(port):
        raise PortDirectionError(f'Expected output port, got "{port.direction.value}" for port "{port.id}"')
    return port


__all__ = ["assert_input_port", "assert_output_port", "is_input_port", "is_output_port"]
