"""Automatic placement of a scene's button and command nodes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Hashable, List

import networkx as nx

from .scene_model import Scene

NODE_SIZE = 10.0
NODE_SEPARATION = 50.0
RANK_SEPARATION = 50.0
BUTTON_LAYER_OFFSET = 60.0
DEFAULT_SCALE = 5.0


class CommandSlot(str, Enum):
    OPEN = "open"
    CLOSE = "close"


@dataclass(frozen=True)
class Position:
    x: float
    y: float

    def __add__(self, other: "Position") -> "Position":
        return Position(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Position") -> "Position":
        return Position(self.x - other.x, self.y - other.y)

    def scaled(self, factor: float) -> "Position":
        return Position(self.x * factor, self.y * factor)


def button_node_id(scene_id: str, slot: int) -> str:
    return f"{scene_id}/button/{slot}"


def command_node_id(scene_id: str, slot: CommandSlot | str) -> str:
    return f"{scene_id}/{CommandSlot(slot).value}-commands"


def button_node_ids(scene: Scene) -> List[str]:
    """Return one node identifier per button, in button order."""

    return [button_node_id(scene.scene_id, slot) for slot in range(len(scene.buttons))]


def command_node_ids(scene: Scene) -> List[str]:
    """Return one node identifier per non-empty command group."""

    node_ids: List[str] = []
    if scene.open_commands:
        node_ids.append(command_node_id(scene.scene_id, CommandSlot.OPEN))
    if scene.close_commands:
        node_ids.append(command_node_id(scene.scene_id, CommandSlot.CLOSE))
    return node_ids


def layered_layout(
    graph: nx.DiGraph,
    *,
    node_size: float = NODE_SIZE,
    node_separation: float = NODE_SEPARATION,
    rank_separation: float = RANK_SEPARATION,
) -> Dict[Hashable, Position]:
    """Place the nodes of a directed acyclic graph in top-to-bottom ranks.

    Each node's rank is the length of the longest path reaching it. Nodes in a
    rank are ordered by the mean position of their predecessors in the rank
    above, which keeps sibling groups together and avoids crossings in trees.
    Every rank is centred on the widest one. Returned positions are node
    centres in an arbitrary coordinate space with the top-left at the origin.
    """

    if not nx.is_directed_acyclic_graph(graph):
        raise ValueError("layered_layout requires a directed acyclic graph")

    insertion_index = {node: index for index, node in enumerate(graph.nodes)}
    layers: List[List[Hashable]] = []
    for generation in nx.topological_generations(graph):
        layer = sorted(generation, key=insertion_index.__getitem__)
        if layers:
            previous = {node: index for index, node in enumerate(layers[-1])}

            def barycenter(node: Hashable) -> float:
                parents = [previous[p] for p in graph.predecessors(node) if p in previous]
                if not parents:
                    return float(len(previous))
                return sum(parents) / len(parents)

            layer.sort(key=lambda node: (barycenter(node), insertion_index[node]))
        layers.append(layer)

    def span(count: int) -> float:
        return count * node_size + max(count - 1, 0) * node_separation

    widest = max((span(len(layer)) for layer in layers), default=0.0)
    positions: Dict[Hashable, Position] = {}
    for rank, layer in enumerate(layers):
        offset = (widest - span(len(layer))) / 2
        y = node_size / 2 + rank * (node_size + rank_separation)
        for index, node in enumerate(layer):
            x = offset + node_size / 2 + index * (node_size + node_separation)
            positions[node] = Position(x, y)
    return positions


def _star(root: str, children: List[str]) -> nx.DiGraph:
    graph = nx.DiGraph()
    graph.add_node(root)
    for child in children:
        graph.add_edge(root, child)
    return graph


def group_around_scene(
    scene: Scene, anchor: Position, scale: float = DEFAULT_SCALE
) -> Dict[str, Position]:
    """Compute positions for a scene's button and command nodes.

    Buttons and command groups are laid out as two separate trees rooted at
    the scene so the two groups never interleave. The trees are then stitched
    together through their shared root:
    both are moved so the button tree's root sits on ``anchor``, the buttons
    are shifted into the command tree's frame and pushed one layer down, and
    the combined result is scaled. Without command groups only the translated
    button positions are returned, unscaled. The scene node itself is never
    part of the result; its position belongs to the caller.
    """

    if scale <= 0:
        raise ValueError("scale must be positive")

    scene_id = scene.scene_id
    button_ids = button_node_ids(scene)
    command_ids = command_node_ids(scene)

    button_layout = layered_layout(_star(scene_id, button_ids))
    command_layout = layered_layout(_star(scene_id, command_ids))

    button_root = button_layout[scene_id]
    offset = anchor - button_root
    buttons = {
        node_id: position + offset
        for node_id, position in button_layout.items()
        if node_id != scene_id
    }

    if not command_ids:
        return buttons

    commands = {
        node_id: position + offset
        for node_id, position in command_layout.items()
        if node_id != scene_id
    }
    parent_offset = command_layout[scene_id] - button_root
    button_shift = parent_offset + Position(0.0, BUTTON_LAYER_OFFSET)

    result: Dict[str, Position] = {}
    for node_id, position in buttons.items():
        result[node_id] = (position + button_shift).scaled(scale)
    for node_id, position in commands.items():
        result[node_id] = position.scaled(scale)
    return result


__all__ = [
    "BUTTON_LAYER_OFFSET",
    "DEFAULT_SCALE",
    "CommandSlot",
    "Position",
    "button_node_id",
    "command_node_id",
    "button_node_ids",
    "command_node_ids",
    "layered_layout",
    "group_around_scene",
]
