"""
Line-oriented netlist format used by the schematic editor.

One record per line, fields separated by spaces:

    R|L|C|V|J name in_node out_node value x y rotation
    W node vertex_count conn_count
      IN|OUT component_name      (conn_count lines)
      x y                        (vertex_count lines)
    G node x y

`-` stands for an unbound terminal or wire node. Positions and rotation are
display-only: they are kept in the records but the Circuit ignores them.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union
import logging
from .circuit import Circuit
from .components.base import Component, ComponentType, TerminalType
from .config import SolverConfig
from .errors import NetlistError

logger = logging.getLogger(__name__)

UNBOUND = "-"
COMPONENT_KINDS = {t.value: t for t in ComponentType}


@dataclass
class ComponentRecord:
    kind: ComponentType
    name: str
    input_node: Optional[str]
    output_node: Optional[str]
    value: float
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0


@dataclass
class WireRecord:
    node: Optional[str]
    connections: List[Tuple[TerminalType, str]] = field(default_factory=list)
    vertices: List[Tuple[float, float]] = field(default_factory=list)


@dataclass
class GroundRecord:
    node: str
    x: float = 0.0
    y: float = 0.0


@dataclass
class Netlist:
    components: List[ComponentRecord] = field(default_factory=list)
    wires: List[WireRecord] = field(default_factory=list)
    grounds: List[GroundRecord] = field(default_factory=list)


def _node_field(token: str) -> Optional[str]:
    return None if token == UNBOUND else token


def _number(token: str, lineno: int) -> float:
    try:
        return float(token)
    except ValueError:
        raise NetlistError(f"Line {lineno}: expected a number, got '{token}'.") from None


def _count(token: str, lineno: int) -> int:
    try:
        value = int(token)
    except ValueError:
        raise NetlistError(f"Line {lineno}: expected a count, got '{token}'.") from None
    if value < 0:
        raise NetlistError(f"Line {lineno}: negative count {value}.")
    return value


def _require(parts: List[str], expected: int, what: str, lineno: int) -> None:
    if len(parts) < expected:
        raise NetlistError(f"Line {lineno}: {what} needs {expected} fields, got {len(parts)}.")


def _fields(lines: List[str], pos: int, expected: int, what: str) -> List[str]:
    if pos >= len(lines):
        raise NetlistError(f"Unexpected end of netlist while reading {what}.")
    parts = lines[pos].split()
    _require(parts, expected, what, pos + 1)
    return parts


def parse_netlist(text: str) -> Netlist:
    netlist = Netlist()
    lines = text.splitlines()
    pos = 0
    while pos < len(lines):
        parts = lines[pos].split()
        lineno = pos + 1
        pos += 1
        if not parts:
            continue
        kind = parts[0]
        if kind in COMPONENT_KINDS:
            _require(parts, 8, "component record", lineno)
            netlist.components.append(ComponentRecord(
                kind=COMPONENT_KINDS[kind],
                name=parts[1],
                input_node=_node_field(parts[2]),
                output_node=_node_field(parts[3]),
                value=_number(parts[4], lineno),
                x=_number(parts[5], lineno),
                y=_number(parts[6], lineno),
                rotation=_number(parts[7], lineno),
            ))
        elif kind == "W":
            _require(parts, 4, "wire record", lineno)
            wire = WireRecord(node=_node_field(parts[1]))
            vertex_count = _count(parts[2], lineno)
            conn_count = _count(parts[3], lineno)
            for _ in range(conn_count):
                term, name = _fields(lines, pos, 2, "wire connection")[:2]
                if term not in ("IN", "OUT"):
                    raise NetlistError(f"Line {pos + 1}: unknown terminal '{term}'.")
                wire.connections.append((TerminalType(term), name))
                pos += 1
            for _ in range(vertex_count):
                xs, ys = _fields(lines, pos, 2, "wire vertex")[:2]
                wire.vertices.append((_number(xs, pos + 1), _number(ys, pos + 1)))
                pos += 1
            netlist.wires.append(wire)
        elif kind == "G":
            _require(parts, 4, "ground record", lineno)
            netlist.grounds.append(GroundRecord(parts[1], _number(parts[2], lineno), _number(parts[3], lineno)))
        else:
            raise NetlistError(f"Line {lineno}: invalid record type '{kind}'.")
    return netlist


def _fmt_number(value: float) -> str:
    value = float(value)
    return str(int(value)) if value.is_integer() and abs(value) < 1e15 else repr(value)


def _iter_lines(netlist: Netlist) -> Iterator[str]:
    for rec in netlist.components:
        yield " ".join([
            rec.kind.value,
            rec.name,
            rec.input_node or UNBOUND,
            rec.output_node or UNBOUND,
            _fmt_number(rec.value),
            _fmt_number(rec.x),
            _fmt_number(rec.y),
            _fmt_number(rec.rotation),
        ])
    for wire in netlist.wires:
        yield f"W {wire.node or UNBOUND} {len(wire.vertices)} {len(wire.connections)}"
        for term, name in wire.connections:
            yield f"{term.value} {name}"
        for x, y in wire.vertices:
            yield f"{_fmt_number(x)} {_fmt_number(y)}"
    for gnd in netlist.grounds:
        yield f"G {gnd.node} {_fmt_number(gnd.x)} {_fmt_number(gnd.y)}"


def format_netlist(netlist: Netlist) -> str:
    return "".join(line + "\n" for line in _iter_lines(netlist))


def load_netlist(path: Union[str, Path]) -> Netlist:
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as exc:
        raise NetlistError(f"Failed to read netlist file '{path}': {exc}") from exc
    return parse_netlist(text)


def save_netlist(netlist: Netlist, path: Union[str, Path]) -> None:
    path = Path(path)
    path.write_text(format_netlist(netlist))
    logger.info(f"Netlist saved into: {path}.")


def netlist_to_circuit(netlist: Netlist, config: Optional[SolverConfig] = None) -> Circuit:
    """
    Build a Circuit from netlist records.

    A wire connection binds the named component terminal to the wire's node;
    when the terminal already sits on another node the two nodes are merged.
    """
    circuit = Circuit(config=config) if config is not None else Circuit()

    def bind(name: Optional[str]) -> Optional[int]:
        return None if name is None else circuit.add_node(name)

    for rec in netlist.components:
        circuit.add_component(Component(
            name=rec.name,
            type=rec.kind,
            value=rec.value,
            input_node=bind(rec.input_node),
            output_node=bind(rec.output_node),
        ))

    for wire in netlist.wires:
        node = circuit.add_node(wire.node)
        for term, name in wire.connections:
            try:
                comp = circuit.get_component(name)
            except KeyError:
                logger.warning(f"Wire on node '{circuit.node(node).name}' references unknown component '{name}'.")
                continue
            current = comp.get_terminal_node(term)
            if current is None:
                circuit.connect(comp, term, node)
            elif current != node:
                circuit.merge_nodes(node, current)

    for gnd in netlist.grounds:
        circuit.set_ground(circuit.add_node(gnd.node))
    return circuit


def circuit_to_netlist(circuit: Circuit) -> Netlist:
    """
    Describe a Circuit as netlist records with zeroed display fields.
    """
    netlist = Netlist()
    for comp in circuit.components:
        value = complex(comp.value)
        if value.imag != 0:
            raise NetlistError(f"Component '{comp.name}' has a complex value; the netlist stores real values only.")
        in_name, out_name = circuit.terminal_names(comp)
        netlist.components.append(ComponentRecord(comp.type, comp.name, in_name, out_name, value.real))
    for node in circuit.nodes:
        if node.is_ground:
            netlist.grounds.append(GroundRecord(node.name))
    return netlist
