"""Similarity graph payloads.

Edges are undirected; ``source < target`` holds for every edge.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class GraphNode(BaseModel):
    id: int
    label: str
    text: str = ""


class GraphEdge(BaseModel):
    source: int
    target: int
    weight: float


class SimilarityGraph(BaseModel):
    nodes: list[GraphNode] = Field(default_factory=list)
    edges: list[GraphEdge] = Field(default_factory=list)
