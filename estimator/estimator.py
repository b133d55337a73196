import logging
import math as m

import numpy as np

from utils.exceptions import DegenerateSampleError
from utils.normalization import coordinateTolerance

logger = logging.getLogger(__name__)


class Estimator:
    """ 模型估计器基类

    RANSAC 只通过这里的接口使用模型，从不关心具体是哪一种几何模型
    """

    # 两点距离小于 坐标量级 * 该比例 时视为重合
    coincidence_ratio = 1e-6

    def __init__(self, minimalSolver, nonMinimalSolver):
        # 用于估计最小样本模型的估计器
        self.minimal_solver = minimalSolver()
        # 用于估计非最小样本模型的估计器
        self.non_minimal_solver = nonMinimalSolver()

    def isWeightingApplicable(self):
        """ 当应用非最小拟合时决定点是否可以加权的标志 """
        return True

    def inlierLimit(self):
        """ 对非最小样本进行内部RANSAC时的样本大小 """
        return 7 * self.sampleSize()

    def sampleSize(self):
        """ 估计模型所需的最小样本的大小 """
        return self.minimal_solver.sampleSize()

    def nonMinimalSampleSize(self):
        """ 估计模型所需的非最小样本的大小 """
        return self.non_minimal_solver.sampleSize()

    def estimateModel(self,
                      data,
                      sample):
        """ 给定一组数据点，估计最小样本模型

        参数
        ----------
        data : numpy
            输入的数据点集
        sample : list
            用于估计模型的样本点序号列表

        返回
        ----------
        list(Model)
            通过样本估计的模型列表，样本退化时为空列表
        """
        try:
            models = self.minimal_solver.estimateModel(data, sample, self.sampleSize())
        except DegenerateSampleError as error:
            logger.debug("Degenerate minimal sample %s: %s", sample, error)
            return []
        except np.linalg.LinAlgError as error:
            logger.debug("Minimal solver failed on sample %s: %s", sample, error)
            return []
        return [model for model in models
                if model.is_valid and self.isValidMinimalModel(model, data, sample)]

    def estimateModelNonminimal(self,
                                data,
                                sample,
                                sample_number,
                                weights=None):
        """ 根据数据点集的非最小采样估计模型
            在加权最小二乘的情况下，权重可以输入到函数中

        参数
        ----------
        data : numpy
            输入的数据点集
        sample : list
            用于估计模型的样本点序号列表
        sample_number : int
            样本点数目
        weights : list
            数据点集中点的对应权重

        返回
        ----------
        list(Model)
            通过样本估计的模型列表
        """
        if sample_number < self.nonMinimalSampleSize():
            return []
        try:
            models = self.non_minimal_solver.estimateModel(data,
                                                           sample,
                                                           sample_number,
                                                           weights=weights)
        except (DegenerateSampleError, np.linalg.LinAlgError) as error:
            logger.debug("Non-minimal fitting on %d points failed: %s", sample_number, error)
            return []
        return [model for model in models if model.is_valid]

    def residual(self, point, model):
        """ 给定模型和数据点，计算误差 """
        return m.sqrt(self.squaredResidual(point, model))

    def squaredResidual(self, point, model):
        """ 给定模型和数据点，计算误差的平方 """
        return float(self.squaredResiduals(np.atleast_2d(point), model)[0])

    def squaredResiduals(self, data, model):
        """ 给定模型和数据点集，计算每个点误差的平方 """
        raise NotImplementedError

    def isValidSample(self, data, sample, threshold=None):
        """ 在计算模型参数之前判断所选样本是否退化
        默认检查样本中是否有在任一图像中重合的点，以及样本在任一图像中的分布范围是否过小

        参数
        ----------
        data : numpy
            输入的数据点集
        sample : list
            用于估计模型的样本点序号列表
        threshold : float 可选
            决定内点和外点的阈值，样本到质心的平均距离须不小于该值

        返回
        ----------
        bool
            样本是否有效
        """
        points = data[np.asarray(sample, dtype=int)]
        for columns in (slice(0, 2), slice(2, 4)):
            coordinates = points[:, columns]
            tolerance = coordinateTolerance(coordinates, self.coincidence_ratio)
            differences = coordinates[:, None, :] - coordinates[None, :, :]
            distances = np.sqrt(np.sum(differences ** 2, axis=2))
            # 只看上三角，排除点与自身的距离
            if np.any(distances[np.triu_indices(len(sample), k=1)] < tolerance):
                return False
            # 所有点挤在一个阈值范围内时，样本无法确定模型
            spread = np.mean(np.sqrt(np.sum((coordinates - np.mean(coordinates, axis=0)) ** 2, axis=1)))
            if threshold is not None and spread < threshold:
                return False
        return True

    def isValidMinimalModel(self, model, data, sample):
        """ 对最小样本估计出的模型做额外的几何检查 """
        return True

    def isValidModel(self,
                     model,
                     data=None,
                     inliers=None,
                     minimal_sample=None,
                     threshold=None):
        """ 检查模型是否有效，可以是模型结构的几何检查或其他验证

        参数
        ----------
        model : Model
            需要检查的模型
        data : numpy
            输入的数据点集
        inliers : list
            需要检查的模型的内点
        minimal_sample : list
            估计模型的样本点序号
        threshold : float
            决定内点和外点的阈值

        返回
        ----------
        bool
            模型是否有效
        """
        return model is not None and model.is_valid and np.linalg.norm(model.descriptor) > 0
