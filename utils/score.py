import numpy as np

from .parallel import WorkerPool


class Score:
    """ RANSAC 模型评分

    先比较内点数目，内点数目相同时比较 MSAC 得分
    """

    def __init__(self, inlier_number=0, value=0.0):
        self.inlier_number = inlier_number   # 内点数目
        self.value = value                   # 得分

    def __lt__(self, v):
        return (self.inlier_number, self.value) < (v.inlier_number, v.value)

    def __gt__(self, v):
        return (self.inlier_number, self.value) > (v.inlier_number, v.value)

    def __eq__(self, v):
        return (self.inlier_number, self.value) == (v.inlier_number, v.value)

    def __repr__(self):
        return f"Score(inlier_number={self.inlier_number}, value={self.value:.4f})"


class MSACScoringFunction:
    """ MSAC 截断二次损失评分函数 """

    def __init__(self, pool=None):
        self.threshold = 0.0
        self.squared_threshold = 0.0
        self.point_number = 0
        self.pool = pool if pool is not None else WorkerPool(1)

    def initialize(self, threshold, point_number, pool=None):
        self.threshold = threshold
        self.squared_threshold = threshold ** 2
        self.point_number = point_number
        if pool is not None:
            self.pool = pool

    def getSquaredResiduals(self, points, model, estimator):
        """ 按核心数分块并行计算所有点对模型的残差平方

        参数
        ----------
        points : numpy
            输入的数据点集
        model : Model
            当前模型参数
        estimator : Estimator
            模型的估计器

        返回
        ----------
        numpy
            每个点的残差平方，无法计算的残差记为 inf
        """
        blocks = self.pool.mapChunks(
            lambda start, end: estimator.squaredResiduals(points[start:end], model),
            self.point_number)
        if len(blocks) == 0:
            return np.zeros(0)
        squared_residuals = np.concatenate(blocks)
        return np.where(np.isfinite(squared_residuals), squared_residuals, np.inf)

    def getScore(self, points, model, estimator, squared_residuals=None):
        """ 求解模型对应的评估得分

        参数
        ----------
        points : numpy
            输入的数据点集
        model : Model
            当前模型参数
        estimator : Estimator
            模型的估计器
        squared_residuals : numpy 可选
            已经计算好的残差平方

        返回
        ----------
        Score, list
            当前模型参数的评估得分
            当前模型参数的对应内点
        """
        if squared_residuals is None:
            squared_residuals = self.getSquaredResiduals(points, model, estimator)

        # 残差不大于阈值的点为内点
        inlier_mask = squared_residuals <= self.squared_threshold
        inliers = np.flatnonzero(inlier_mask).tolist()
        # 加分: 原始截断二次损失 1 - 残差^2/阈值^2
        value = float(np.sum(1.0 - squared_residuals[inlier_mask] / self.squared_threshold))
        return Score(len(inliers), value), inliers
