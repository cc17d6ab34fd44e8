"""
Test token graph path enumeration
"""

import sys
from pathlib import Path

# Add parent to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent))


def test_direct_and_two_hop_paths(pool_factory, mints):
    """Direct pools come before two-hop paths"""
    from whirlpool_client.routing import TokenGraph

    x, y, z = mints

    print("Testing path enumeration...")

    xy = pool_factory(x, y)
    xz = pool_factory(x, z)
    zy = pool_factory(z, y)
    graph = TokenGraph.from_pools([xz, zy, xy])

    paths = graph.find_paths(x, y, max_hops=2)
    assert len(paths) == 2
    assert paths[0].pool_addresses == (xy.address,)
    assert paths[1].pool_addresses == (xz.address, zy.address)

    # Edge directions follow the pool's token order
    first, second = paths[1].edges
    assert first.input_mint == x and first.output_mint == z and first.a_to_b is True
    assert second.input_mint == z and second.output_mint == y and second.a_to_b is True

    print("  path enumeration: PASSED")


def test_max_hops_limits_paths(pool_factory, mints):
    """max_hops=1 keeps only direct pools"""
    from whirlpool_client.routing import TokenGraph

    x, y, z = mints

    print("Testing max_hops...")

    graph = TokenGraph.from_pools([pool_factory(x, z), pool_factory(z, y)])
    assert graph.find_paths(x, y, max_hops=1) == []
    assert len(graph.find_paths(x, y, max_hops=2)) == 1

    print("  max_hops: PASSED")


def test_parallel_pools_are_separate_edges(pool_factory, mints):
    """Two pools for the same pair give two paths"""
    from whirlpool_client.routing import TokenGraph

    x, y, _ = mints

    print("Testing parallel pools...")

    p64 = pool_factory(x, y, tick_spacing=64)
    p8 = pool_factory(x, y, tick_spacing=8)
    graph = TokenGraph.from_pools([p64, p8])

    assert len(graph.pools_between(x, y)) == 2
    assert len(graph.pools_between(y, x)) == 2
    paths = graph.find_paths(y, x)
    assert {p.pool_addresses for p in paths} == {(p64.address,), (p8.address,)}
    # y is token B, so both hops run b_to_a
    assert all(not p.edges[0].a_to_b for p in paths)

    print("  parallel pools: PASSED")


def test_no_path(pool_factory, mints, address_factory):
    """Unknown or disconnected mints yield no paths"""
    from whirlpool_client.routing import TokenGraph

    x, y, z = mints
    w = address_factory()

    print("Testing missing paths...")

    graph = TokenGraph.from_pools([pool_factory(x, y), pool_factory(z, w)])
    assert graph.find_paths(x, w) == []
    assert graph.find_paths(x, address_factory()) == []
    assert graph.find_paths(x, x) == []
    assert graph.token_count == 4
    assert graph.neighbors(x) == {y}

    print("  missing paths: PASSED")


def test_paths_never_revisit_a_mint(pool_factory, mints):
    """A cycle back to the input mint is not a path"""
    from whirlpool_client.routing import TokenGraph

    x, y, z = mints

    print("Testing simple paths...")

    graph = TokenGraph.from_pools([pool_factory(x, y), pool_factory(y, z), pool_factory(z, x)])
    for path in graph.find_paths(x, z, max_hops=2):
        visited = [path.edges[0].input_mint] + [edge.output_mint for edge in path.edges]
        assert len(visited) == len(set(visited))
        assert path.edges[-1].output_mint == z

    print("  simple paths: PASSED")
