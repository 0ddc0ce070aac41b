import pytest

from GEMS import graph_utils, loop_resolution


class FakeSector:
    def __init__(self, fuels):
        self.fuels = set(fuels)

    def get_fuels(self):
        return self.fuels


class TestGraphUtils:
    @pytest.fixture
    def chain(self):
        sectors = {'electricity': FakeSector(['refining', 'coal']), 'refining': FakeSector(['crude'])}
        return graph_utils.make_sector_graph('R', sectors, ['electricity'])

    @pytest.fixture
    def loop(self):
        sectors = {'electricity': FakeSector(['refining']), 'refining': FakeSector(['electricity'])}
        return graph_utils.make_sector_graph('R', sectors, ['electricity'])

    @staticmethod
    def visit_order(traversal, graph):
        visited = []
        traversal(graph, lambda g, node: visited.append(node), root='R')
        return visited

    def test_make_sector_graph(self, chain):
        assert set(chain.nodes) == {'R', 'electricity', 'refining'}
        assert set(chain.edges) == {('R', 'electricity'), ('electricity', 'refining')}

    def test_top_down(self, chain):
        assert self.visit_order(graph_utils.top_down_traversal, chain) == \
            ['R', 'electricity', 'refining']

    def test_bottom_up(self, chain):
        assert self.visit_order(graph_utils.bottom_up_traversal, chain) == \
            ['refining', 'electricity', 'R']

    def test_find_loops(self, chain, loop):
        assert graph_utils.find_loops(chain) == []
        assert len(graph_utils.find_loops(loop)) == 1

    def test_top_down_loop(self, loop):
        assert self.visit_order(graph_utils.top_down_traversal, loop) == \
            ['R', 'electricity', 'refining']

    def test_bottom_up_loop(self, loop):
        assert self.visit_order(graph_utils.bottom_up_traversal, loop) == \
            ['refining', 'electricity', 'R']

    def test_loop_resolution(self):
        cycles = [['a', 'b'], ['b', 'c']]
        distances = {'a': 1, 'b': 2}
        assert loop_resolution.min_distance_from_root(cycles, distances) == 'a'
        assert loop_resolution.max_distance_from_root(cycles, distances) == 'c'
