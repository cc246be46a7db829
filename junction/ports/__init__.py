"""
Port engine: definitions, placement, geometry and connection rules.
"""

from .capacity import check_port_capacity, get_effective_max_connections, get_port_connections
from .datatypes import are_data_types_compatible, are_data_types_equal, merge_data_types, normalize_data_types
from .derivation import (
    create_port_from_definition,
    derive_node_ports,
    get_port_definition,
    get_port_instance_count,
    infer_default_port_definitions,
    normalize_port_definition,
)
from .geometry import PortGeometry, PortLayoutConfig, compute_all_port_positions, compute_node_port_positions
from .guards import assert_input_port, assert_output_port, is_input_port, is_output_port
from .keys import create_port_key, get_port_key, parse_port_key
from .placement import get_port_side, normalize_placement
from .planner import ConnectionPlan, ConnectionSwitchBehavior, plan_connection_change
from .queries import (
    compute_connectable_ports,
    find_connectable_port,
    find_nearest_connectable_port,
    get_connectable_node_types,
    get_connectable_port_ids,
)
from .validation import can_connect_ports, create_validated_connection, explain_connection

__all__ = [
    "ConnectionPlan",
    "ConnectionSwitchBehavior",
    "PortGeometry",
    "PortLayoutConfig",
    "are_data_types_compatible",
    "are_data_types_equal",
    "assert_input_port",
    "assert_output_port",
    "can_connect_ports",
    "check_port_capacity",
    "compute_all_port_positions",
    "compute_connectable_ports",
    "compute_node_port_positions",
    "create_port_from_definition",
    "create_port_key",
    "create_validated_connection",
    "derive_node_ports",
    "explain_connection",
    "find_connectable_port",
    "find_nearest_connectable_port",
    "get_connectable_node_types",
    "get_connectable_port_ids",
    "get_effective_max_connections",
    "get_port_connections",
    "get_port_definition",
    "get_port_instance_count",
    "get_port_key",
    "get_port_side",
    "infer_default_port_definitions",
    "is_input_port",
    "is_output_port",
    "merge_data_types",
    "normalize_data_types",
    "normalize_placement",
    "normalize_port_definition",
    "parse_port_key",
    "plan_connection_change",
]
