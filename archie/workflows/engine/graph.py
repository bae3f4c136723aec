"""
Workflow graph definition and compilation.

``StateGraph`` is a builder: register channels, nodes and edges, then
``compile()`` validates the definition and returns an immutable
``CompiledGraph``. All structural errors surface at compile time as
``GraphValidationError``; nothing about the graph's shape can fail at run
time except a decision function returning a key outside its path map.

Usage:
    workflow = StateGraph({"user_input": Channel(), ...})
    workflow.add_node("echo", echo_node)
    workflow.set_entry_router(route_by_flow, {"ask": "echo", "end": END})
    workflow.add_edge("echo", END)
    graph = workflow.compile(resume_channel="user_input")
"""
import inspect
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from archie.domain.exceptions import GraphValidationError, RoutingError
from .channels import Channel

START = "__start__"
END = "__end__"

DecisionFn = Callable[[Mapping[str, Any]], str]
PathMap = Union[Mapping[str, str], Sequence[str]]


@dataclass(frozen=True)
class NodeSpec:
    name: str
    fn: Callable[..., Any]
    accepts_context: bool


@dataclass(frozen=True)
class EdgeSpec:
    """Outgoing edge of one node: static (``target``) or conditional (``decide`` + ``path_map``)."""
    source: str
    target: Optional[str] = None
    decide: Optional[DecisionFn] = None
    path_map: Optional[Mapping[str, str]] = None

    @property
    def is_conditional(self) -> bool:
        return self.decide is not None

    def destinations(self) -> List[str]:
        if self.is_conditional:
            return list(dict.fromkeys(self.path_map.values()))
        return [self.target]

    def resolve(self, state: Mapping[str, Any]) -> str:
        if not self.is_conditional:
            return self.target
        key = self.decide(state)
        if key not in self.path_map:
            raise RoutingError(self.source, key)
        return self.path_map[key]


def _accepts_context(fn: Callable[..., Any]) -> bool:
    """True when the node takes a second positional argument (the run context)."""
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return False
    positional = [
        p for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    has_varargs = any(p.kind == inspect.Parameter.VAR_POSITIONAL for p in params)
    return len(positional) >= 2 or has_varargs


class StateGraph:
    """Mutable graph builder. Build once, then ``compile()``."""

    def __init__(self, channels: Mapping[str, Channel]):
        if not channels:
            raise GraphValidationError("Graph needs at least one state channel")
        self._channels: Dict[str, Channel] = dict(channels)
        self._nodes: Dict[str, NodeSpec] = {}
        self._edges: Dict[str, EdgeSpec] = {}

    def add_node(self, name: str, fn: Callable[..., Any]) -> "StateGraph":
        if name in (START, END):
            raise GraphValidationError(f"'{name}' is a reserved node name")
        if name in self._nodes:
            raise GraphValidationError(f"Node '{name}' already defined")
        if not callable(fn):
            raise GraphValidationError(f"Node '{name}' is not callable")
        self._nodes[name] = NodeSpec(name, fn, _accepts_context(fn))
        return self

    def add_edge(self, source: str, target: str) -> "StateGraph":
        self._set_edge(EdgeSpec(source=source, target=target))
        return self

    def add_conditional_edges(
        self,
        source: str,
        decide: DecisionFn,
        path_map: PathMap,
    ) -> "StateGraph":
        if isinstance(path_map, Mapping):
            mapping = dict(path_map)
        else:
            mapping = {name: name for name in path_map}
        if not mapping:
            raise GraphValidationError(f"Conditional edge from '{source}' has an empty path map")
        self._set_edge(EdgeSpec(
            source=source,
            decide=decide,
            path_map=MappingProxyType(mapping),
        ))
        return self

    def set_entry_point(self, node: str) -> "StateGraph":
        return self.add_edge(START, node)

    def set_entry_router(self, decide: DecisionFn, path_map: PathMap) -> "StateGraph":
        """Conditional edge out of START, evaluated against the caller's initial state."""
        return self.add_conditional_edges(START, decide, path_map)

    def _set_edge(self, edge: EdgeSpec) -> None:
        if edge.source == END:
            raise GraphValidationError("END cannot have outgoing edges")
        if edge.source in self._edges:
            raise GraphValidationError(
                f"Node '{edge.source}' already has an outgoing edge "
                "(use one conditional edge for branching)"
            )
        self._edges[edge.source] = edge

    # ------------------------------------------------------------------
    # Compilation
    # ------------------------------------------------------------------

    def compile(self, resume_channel: Optional[str] = None) -> "CompiledGraph":
        """
        Validate and freeze the graph.

        Checks:
        - every edge source/destination names a defined node (or START/END)
        - every node has an outgoing edge and START has one
        - every node is reachable from START
        - every reachable node has some path to END (no terminal-less cycles)
        - the resume channel, if given, is a declared channel
        """
        if START not in self._edges:
            raise GraphValidationError("Graph has no entry (add_edge(START, ...) or set_entry_router)")

        for source, edge in self._edges.items():
            if source != START and source not in self._nodes:
                raise GraphValidationError(f"Edge source '{source}' is not a defined node")
            for dest in edge.destinations():
                if dest == START:
                    raise GraphValidationError(f"Edge from '{source}' targets START")
                if dest != END and dest not in self._nodes:
                    raise GraphValidationError(
                        f"Edge from '{source}' targets undefined node '{dest}'"
                    )

        missing = [name for name in self._nodes if name not in self._edges]
        if missing:
            raise GraphValidationError(f"Nodes without outgoing edge: {', '.join(missing)}")

        reachable = self._reachable_from(START)
        unreachable = [name for name in self._nodes if name not in reachable]
        if unreachable:
            raise GraphValidationError(f"Unreachable nodes: {', '.join(unreachable)}")

        reaches_end = self._nodes_reaching_end()
        stuck = [name for name in self._nodes if name not in reaches_end]
        if stuck:
            raise GraphValidationError(f"Nodes with no path to END: {', '.join(stuck)}")

        if resume_channel is not None and resume_channel not in self._channels:
            raise GraphValidationError(f"Resume channel '{resume_channel}' is not a declared channel")

        return CompiledGraph(
            channels=self._channels,
            nodes=self._nodes,
            edges=self._edges,
            resume_channel=resume_channel,
        )

    def _reachable_from(self, origin: str) -> set:
        seen = set()
        frontier = [origin]
        while frontier:
            current = frontier.pop()
            edge = self._edges.get(current)
            if edge is None:
                continue
            for dest in edge.destinations():
                if dest != END and dest not in seen:
                    seen.add(dest)
                    frontier.append(dest)
        return seen

    def _nodes_reaching_end(self) -> set:
        # Fixed point over reversed edges starting from END
        reaches = {END}
        changed = True
        while changed:
            changed = False
            for source, edge in self._edges.items():
                if source not in reaches and any(d in reaches for d in edge.destinations()):
                    reaches.add(source)
                    changed = True
        return reaches


class CompiledGraph:
    """Immutable, validated graph: node table + edge table + channel table."""

    def __init__(
        self,
        channels: Mapping[str, Channel],
        nodes: Mapping[str, NodeSpec],
        edges: Mapping[str, EdgeSpec],
        resume_channel: Optional[str],
    ):
        self.channels: Mapping[str, Channel] = MappingProxyType(dict(channels))
        self.nodes: Mapping[str, NodeSpec] = MappingProxyType(dict(nodes))
        self.edges: Mapping[str, EdgeSpec] = MappingProxyType(dict(edges))
        self.resume_channel = resume_channel

    def next_node(self, source: str, state: Mapping[str, Any]) -> str:
        """Destination after ``source`` for the given (fully merged) state."""
        return self.edges[source].resolve(state)

    def describe(self) -> Dict[str, Any]:
        """Nodes and edges as plain data (``archie graph --json``)."""
        return {
            "nodes": list(self.nodes),
            "edges": [
                {
                    "source": edge.source,
                    "targets": edge.destinations(),
                    "conditional": edge.is_conditional,
                }
                for edge in self.edges.values()
            ],
        }

    def to_mermaid(self) -> str:
        """Render the graph as a Mermaid flowchart (dotted arrows for conditional edges)."""
        labels = {START: "Start", END: "End"}
        lines = ["graph TD;"]
        for name in [START, *self.nodes, END]:
            lines.append(f"    {name}([{labels.get(name, name)}]);")
        for edge in self.edges.values():
            arrow = "-.->" if edge.is_conditional else "-->"
            for dest in edge.destinations():
                lines.append(f"    {edge.source} {arrow} {dest};")
        return "\n".join(lines) + "\n"

