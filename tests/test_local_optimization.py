import numpy as np
import pytest

from conftest import TwoViewScene
from estimator import EstimatorFundamental
from gcransac import (GCRANSAC, GraphCutLocalOptimizer, OptimizationFailure,
                      Settings, Statistics)
from graph import GraphCut
from neighbor import GridNeighborhoodGraph
from solver import SolverFundamentalMatrixEightPoint
from utils.score import MSACScoringFunction


def makeOptimizer(points, settings):
    estimator = EstimatorFundamental()
    neighborhood_graph = GridNeighborhoodGraph(points, settings.neighborhood_sphere_radius)
    scoring_function = MSACScoringFunction()
    scoring_function.initialize(settings.threshold, len(points))
    optimizer = GraphCutLocalOptimizer(estimator, neighborhood_graph, scoring_function, settings)
    return optimizer, estimator, scoring_function


def roughModel(scene, estimator, scoring_function):
    """ 用少量带噪声的真实点对拟合出的粗略模型 """
    model = SolverFundamentalMatrixEightPoint().estimateModel(scene.points, scene.true_inliers[:8], 8)[0]
    score, inliers = scoring_function.getScore(scene.points, model, estimator)
    return model, inliers, score


@pytest.fixture
def noisy_scene():
    return TwoViewScene(seed=4, noise=1.0)


class TestGraphCutLocalOptimizer:

    def test_improves_rough_model(self, noisy_scene):
        settings = Settings(threshold=2.0)
        optimizer, estimator, scoring_function = makeOptimizer(noisy_scene.points, settings)
        model, inliers, score = roughModel(noisy_scene, estimator, scoring_function)

        statistics = Statistics()
        result = optimizer.run(noisy_scene.points, model, inliers, score, statistics)
        assert result is not None
        optimized_model, optimized_inliers, optimized_score = result
        assert optimized_score > score
        assert len(optimized_inliers) >= len(inliers)
        assert optimized_model is not model
        assert statistics.local_optimization_number == 1
        assert statistics.graph_cut_number >= 1

    def test_inputs_are_not_modified(self, noisy_scene):
        settings = Settings(threshold=2.0)
        optimizer, estimator, scoring_function = makeOptimizer(noisy_scene.points, settings)
        model, inliers, score = roughModel(noisy_scene, estimator, scoring_function)

        points_before = noisy_scene.points.copy()
        descriptor_before = model.descriptor.copy()
        inliers_before = list(inliers)
        score_before = (score.inlier_number, score.value)

        optimizer.run(noisy_scene.points, model, inliers, score, Statistics())
        assert np.array_equal(noisy_scene.points, points_before)
        assert np.array_equal(model.descriptor, descriptor_before)
        assert inliers == inliers_before
        assert (score.inlier_number, score.value) == score_before

    def test_zero_iterations_is_a_no_op(self, noisy_scene):
        settings = Settings(threshold=2.0, max_local_optimization_number=0)
        optimizer, estimator, scoring_function = makeOptimizer(noisy_scene.points, settings)
        model, inliers, score = roughModel(noisy_scene, estimator, scoring_function)

        statistics = Statistics()
        assert optimizer.run(noisy_scene.points, model, inliers, score, statistics) is None
        assert statistics.local_optimization_number == 0
        assert statistics.graph_cut_number == 0

    def test_optimal_model_is_not_replaced(self, scene):
        settings = Settings(threshold=2.0)
        optimizer, estimator, scoring_function = makeOptimizer(scene.points, settings)
        model = SolverFundamentalMatrixEightPoint().estimateModel(scene.points, scene.true_inliers,
                                                                  len(scene.true_inliers))[0]
        score, inliers = scoring_function.getScore(scene.points, model, estimator)
        # 非回退: 要么没有结果，要么严格更好
        result = optimizer.run(scene.points, model, inliers, score, Statistics())
        assert result is None or result[2] > score

    def test_graph_cut_failure_propagates(self, noisy_scene, monkeypatch):
        def failingLabeling(self, *args, **kwargs):
            raise OptimizationFailure("maxflow failed")

        monkeypatch.setattr(GraphCut, "labeling", failingLabeling)
        settings = Settings(threshold=2.0)
        optimizer, estimator, scoring_function = makeOptimizer(noisy_scene.points, settings)
        model, inliers, score = roughModel(noisy_scene, estimator, scoring_function)
        with pytest.raises(OptimizationFailure):
            optimizer.run(noisy_scene.points, model, inliers, score, Statistics())

    def test_engine_absorbs_graph_cut_failure(self, scene, monkeypatch):
        def failingLabeling(self, *args, **kwargs):
            raise OptimizationFailure("maxflow failed")

        monkeypatch.setattr(GraphCut, "labeling", failingLabeling)
        gcransac = GCRANSAC(Settings(threshold=2.0, confidence=0.99, random_seed=7))
        model, inliers = gcransac.run(scene.points, EstimatorFundamental())
        assert model is not None and model.is_valid
        assert len(inliers) >= len(scene.true_inliers)
        assert gcransac.statistics.failed_local_optimization_number >= 1
        assert gcransac.statistics.failed_local_optimization_number == \
            gcransac.statistics.local_optimization_number
