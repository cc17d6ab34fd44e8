"""
Token graph and path enumeration for routed swaps

Tokens are nodes, pools are edges. Several pools may connect the same pair
(different tick spacings), so edges are kept per pool rather than per pair.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Set, Tuple

from ..types import Whirlpool, Path, PathEdge


class TokenGraph:
    """
    Graph of mints connected by Whirlpools

    Usage:
        graph = TokenGraph.from_pools(liquid_pools)
        paths = graph.find_paths(mint_in, mint_out, max_hops=2)
    """

    def __init__(self) -> None:
        self._adjacency: Dict[str, Dict[str, List[Whirlpool]]] = {}

    @classmethod
    def from_pools(cls, pools: Iterable[Whirlpool]) -> "TokenGraph":
        graph = cls()
        for pool in pools:
            graph.add_pool(pool)
        return graph

    def add_pool(self, pool: Whirlpool) -> None:
        """Add a bidirectional edge for the pool's token pair"""
        a, b = pool.token_mint_a, pool.token_mint_b
        if a == b:
            return
        self._adjacency.setdefault(a, {}).setdefault(b, []).append(pool)
        self._adjacency.setdefault(b, {}).setdefault(a, []).append(pool)

    def neighbors(self, mint: str) -> Set[str]:
        return set(self._adjacency.get(mint, {}))

    def pools_between(self, mint_x: str, mint_y: str) -> List[Whirlpool]:
        return list(self._adjacency.get(mint_x, {}).get(mint_y, []))

    def has_token(self, mint: str) -> bool:
        return mint in self._adjacency

    @property
    def token_count(self) -> int:
        return len(self._adjacency)

    def find_paths(self, input_mint: str, output_mint: str, max_hops: int = 2) -> List[Path]:
        """
        All simple paths of 1..max_hops pools from input_mint to output_mint

        No mint and no pool appears twice in a path. Shorter paths come first.
        """
        if input_mint == output_mint or not self.has_token(input_mint) or not self.has_token(output_mint):
            return []

        paths: List[Path] = []
        frontier: List[Tuple[str, Tuple[PathEdge, ...], Set[str]]] = [(input_mint, (), {input_mint})]

        for _ in range(max_hops):
            next_frontier = []
            for mint, edges, visited in frontier:
                for neighbor in sorted(self._adjacency.get(mint, {})):
                    if neighbor in visited:
                        continue
                    for pool in self._adjacency[mint][neighbor]:
                        edge = PathEdge(
                            pool_address=pool.address,
                            input_mint=mint,
                            output_mint=neighbor,
                            a_to_b=mint == pool.token_mint_a,
                        )
                        new_edges = edges + (edge,)
                        if neighbor == output_mint:
                            paths.append(Path(input_mint, output_mint, new_edges))
                        else:
                            next_frontier.append((neighbor, new_edges, visited | {neighbor}))
            frontier = next_frontier

        return paths
