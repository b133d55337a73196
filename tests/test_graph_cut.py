import numpy as np
import pytest

from graph import GraphCut
from graph.graph_cut import MAX_UNARY_ENERGY
from neighbor import GridNeighborhoodGraph


class EdgeList:
    """ 只提供 getEdges 的简单邻域图 """

    def __init__(self, edges):
        self.edges = edges

    def getEdges(self):
        if len(self.edges) == 0:
            return np.zeros(0, dtype=int), np.zeros(0, dtype=int)
        sources, targets = zip(*self.edges)
        return np.array(sources), np.array(targets)


class TestGraphCut:

    def test_without_edges_labels_follow_threshold(self):
        squared_residuals = np.array([0.0, 3.9, 4.1, 100.0, 1.0])
        inliers = GraphCut().labeling(squared_residuals, EdgeList([]), 0.14, 2.0)
        assert inliers == [0, 1, 4]

    def test_zero_weight_ignores_neighbors(self):
        squared_residuals = np.array([0.0, 0.0, 6.0])
        inliers = GraphCut().labeling(squared_residuals, EdgeList([(0, 2), (1, 2)]), 0.0, 2.0)
        assert inliers == [0, 1]

    @pytest.mark.parametrize("lambda_, expected", [(1.0, [0, 1, 2]), (0.1, [0, 1])])
    def test_spatial_coherence_pulls_labels(self, lambda_, expected):
        # 点 2 单独看是外点 (1.5 > 1)，两个内点邻居各带来 lambda 的代价
        threshold = 2.0
        squared_residuals = np.array([0.0, 0.0, 1.5 * threshold ** 2])
        inliers = GraphCut().labeling(squared_residuals, EdgeList([(0, 2), (1, 2)]), lambda_, threshold)
        assert inliers == expected

    def test_non_finite_residuals_are_outliers(self):
        squared_residuals = np.array([0.0, np.inf, np.nan, 0.5])
        graph_cut = GraphCut()
        inliers = graph_cut.labeling(squared_residuals, EdgeList([(0, 1), (2, 3)]), 0.14, 1.0)
        assert inliers == [0, 3]
        assert np.isfinite(graph_cut.energy)
        assert graph_cut.energy < MAX_UNARY_ENERGY

    def test_neighborhood_graph_input(self, scene):
        squared_residuals = np.where(np.isin(np.arange(len(scene.points)), scene.true_inliers), 0.0, 1e4)
        graph = GridNeighborhoodGraph(scene.points, 20.0)
        inliers = GraphCut().labeling(squared_residuals, graph, 0.14, 2.0)
        assert inliers == scene.true_inliers
