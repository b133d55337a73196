import numpy as np
import pytest

from neighbor import NEIGHBORHOOD_SPACES, GridNeighborhoodGraph
from utils.parallel import WorkerPool


def bruteForceNeighbors(points, radius, space):
    coordinates = points[:, NEIGHBORHOOD_SPACES[space]]
    distances = np.sqrt(np.sum((coordinates[:, None, :] - coordinates[None, :, :]) ** 2, axis=2))
    return [sorted(j for j in np.flatnonzero(row <= radius).tolist() if j != i)
            for i, row in enumerate(distances)]


class TestGridNeighborhoodGraph:

    @pytest.mark.parametrize("space", ["source", "destination", "joint"])
    def test_matches_brute_force(self, scene, space):
        graph = GridNeighborhoodGraph(scene.points, 40.0, space=space)
        expected = bruteForceNeighbors(scene.points, 40.0, space)
        assert [graph.getNeighbors(i) for i in range(len(scene.points))] == expected

    def test_symmetric_without_self_loops(self, scene):
        graph = GridNeighborhoodGraph(scene.points, 30.0)
        for point_idx in range(len(graph)):
            neighbors = graph.getNeighbors(point_idx)
            assert point_idx not in neighbors
            for neighbor_idx in neighbors:
                assert point_idx in graph.getNeighbors(neighbor_idx)

    def test_edges_are_listed_once(self, scene):
        graph = GridNeighborhoodGraph(scene.points, 30.0)
        sources, targets = graph.getEdges()
        assert len(sources) == graph.neighbor_number
        assert np.all(sources < targets)
        assert len(set(zip(sources.tolist(), targets.tolist()))) == graph.neighbor_number

    def test_radius_boundary_is_inclusive(self):
        points = np.array([[0.0, 0.0, 0.0, 0.0],
                           [3.0, 4.0, 3.0, 4.0],
                           [30.0, 0.0, 30.0, 0.0]])
        graph = GridNeighborhoodGraph(points, 5.0, space="source")
        assert graph.getNeighbors(0) == [1]
        assert graph.getNeighbors(2) == []
        assert graph.neighbor_number == 1

    def test_parallel_construction_is_identical(self, scene):
        serial = GridNeighborhoodGraph(scene.points, 25.0)
        with WorkerPool(4) as pool:
            parallel = GridNeighborhoodGraph(scene.points, 25.0, pool=pool)
        assert parallel.neighbor_number == serial.neighbor_number
        for point_idx in range(len(serial)):
            assert parallel.getNeighbors(point_idx) == serial.getNeighbors(point_idx)

    def test_invalid_arguments(self, scene):
        with pytest.raises(ValueError):
            GridNeighborhoodGraph(scene.points, 0.0)
        with pytest.raises(ValueError):
            GridNeighborhoodGraph(scene.points, 10.0, space="left")
