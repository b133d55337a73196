import numpy as np

from solver import SolverHomographyFourPoint
from utils.normalization import homogeneous

from .estimator import Estimator


class EstimatorHomography(Estimator):
    """ 单应矩阵估计器 """

    def __init__(self,
                 minimalSolver=SolverHomographyFourPoint,
                 nonMinimalSolver=SolverHomographyFourPoint):
        super().__init__(minimalSolver, nonMinimalSolver)

    def squaredResiduals(self, data, model):
        """ 源点经单应变换后与目标点距离的平方 """
        transformed = np.dot(homogeneous(data[:, 0:2]), model.descriptor.T)
        with np.errstate(divide='ignore', invalid='ignore'):
            projected = transformed[:, 0:2] / transformed[:, 2:3]
            return np.sum((data[:, 2:4] - projected) ** 2, axis=1)

    def isValidSample(self, data, sample, threshold=None):
        """ 在计算模型参数之前判断所选样本是否退化

        参数
        ----------
        data : numpy
            输入的数据点集
        sample : list
            用于估计模型的样本点序号列表
        threshold : float 可选
            决定内点和外点的阈值

        返回
        ----------
        bool
            样本是否有效
        """
        if not super().isValidSample(data, sample, threshold=threshold):
            return False

        # 检查朝向约束，取前四个样本点进行交叉验证
        a, b, c, d = (data[idx] for idx in sample[0:4])

        p = self.__crossProduct(a[0:2], b[0:2])
        q = self.__crossProduct(a[2:4], b[2:4])
        if (p[0] * c[0] + p[1] * c[1] + p[2]) * (q[0] * c[2] + q[1] * c[3] + q[2]) < 0:
            return False
        if (p[0] * d[0] + p[1] * d[1] + p[2]) * (q[0] * d[2] + q[1] * d[3] + q[2]) < 0:
            return False

        p = self.__crossProduct(c[0:2], d[0:2])
        q = self.__crossProduct(c[2:4], d[2:4])
        if (p[0] * a[0] + p[1] * a[1] + p[2]) * (q[0] * a[2] + q[1] * a[3] + q[2]) < 0:
            return False
        if (p[0] * b[0] + p[1] * b[1] + p[2]) * (q[0] * b[2] + q[1] * b[3] + q[2]) < 0:
            return False

        return True

    def __crossProduct(self, vector1, vector2):
        """ 计算经过两点的直线 (两个齐次点的 cross-product) """
        return np.array([vector1[1] - vector2[1],
                         vector2[0] - vector1[0],
                         vector1[0] * vector2[1] - vector1[1] * vector2[0]])
