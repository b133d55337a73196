import logging

from graph import GraphCut
from utils.exceptions import EstimationFailure

logger = logging.getLogger(__name__)


class GraphCutLocalOptimizer:
    """ 通过图割算法确定内点的局部优化

    交替进行两步: 用 min-cut 求解内点/外点二值标记，再用标记的内点非最小拟合模型，
    直到标记不再变化、模型不再变好或达到最大局部优化次数
    """

    def __init__(self,
                 estimator,
                 neighborhood_graph,
                 scoring_function,
                 settings,
                 sampler=None):
        self.estimator = estimator
        self.neighborhood_graph = neighborhood_graph
        self.scoring_function = scoring_function
        self.settings = settings
        # 局部优化采样器，只在限制内点数目时使用
        self.sampler = sampler
        # GraphCut 最小化优化求解器
        self.energy = GraphCut()

    def run(self,
            points,
            model,
            inliers,
            score,
            statistics,
            squared_residuals=None):
        """ 以给定模型为起点进行局部优化，不修改任何输入

        参数
        ----------
        points : numpy
            输入的数据点集
        model : Model
            起始模型
        inliers : list
            起始模型的内点序号列表
        score : Score
            起始模型的得分
        statistics : Statistics
            累加局部优化和图割次数
        squared_residuals : numpy 可选
            起始模型已经计算好的残差平方

        返回
        ----------
        (Model, list, Score) 或 None
            严格优于起始模型时返回优化结果，否则返回 None
            图割求解失败时抛出 OptimizationFailure
        """
        if self.settings.max_local_optimization_number == 0:
            return None
        statistics.local_optimization_number += 1

        best_model, best_inliers, best_score = model, inliers, score
        current_residuals = squared_residuals
        previous_labeling = None
        improved = False

        for _ in range(self.settings.max_local_optimization_number):
            if current_residuals is None:
                current_residuals = self.scoring_function.getSquaredResiduals(points, best_model, self.estimator)

            # G ← Build the problem graph.
            # L ← Apply graph-cut to G.
            statistics.graph_cut_number += 1
            labeling = self.energy.labeling(current_residuals,
                                            self.neighborhood_graph,
                                            self.settings.spatial_coherence_weight,
                                            self.settings.threshold)
            # 标记稳定则结束
            if labeling == previous_labeling:
                break
            previous_labeling = labeling

            # θ ← Fit a model using labeling
            try:
                result = self.__refit(points, labeling)
            except EstimationFailure as error:
                logger.debug("Local optimization stopped: %s", error)
                break

            # if w > w∗LO then θ∗LO, L∗LO, w∗LO ← θ, L, w
            if not result[2] > best_score:
                break
            best_model, best_inliers, best_score, current_residuals = result
            improved = True

        if not improved:
            return None
        # Output: θ∗LO – model, L∗LO – labeling, w∗LO – support
        return best_model, best_inliers, best_score

    def __refit(self, points, labeling):
        """ 用图割标记的内点拟合模型，返回得分最高的有效模型 """
        sample = labeling
        # 确定内点限制以加速局部优化过程
        inlier_limit = self.estimator.inlierLimit()
        if self.settings.use_inlier_limit and self.sampler is not None and len(labeling) > inlier_limit:
            sample = self.sampler.sample(labeling, inlier_limit)

        if len(sample) < self.estimator.nonMinimalSampleSize():
            raise EstimationFailure(f"{len(sample)} labeled inliers are not enough to fit a model")

        models = self.estimator.estimateModelNonminimal(points, sample, len(sample))
        best = None
        for model in models:
            squared_residuals = self.scoring_function.getSquaredResiduals(points, model, self.estimator)
            score, inliers = self.scoring_function.getScore(points, model, self.estimator, squared_residuals)
            if not self.estimator.isValidModel(model,
                                               data=points,
                                               inliers=inliers,
                                               threshold=self.settings.threshold):
                continue
            if best is None or score > best[2]:
                best = (model, inliers, score, squared_residuals)

        if best is None:
            raise EstimationFailure("non-minimal fitting returned no valid model")
        return best
