import numpy as np

from model import Homography
from utils.exceptions import DegenerateSampleError
from utils.normalization import normalizeSamplePoints

from .solver_engine import SolverEngine


class SolverHomographyFourPoint(SolverEngine):
    """ 归一化 DLT 四点法求解单应矩阵模型参数 """

    def sampleSize(self):
        """ 模型参数估计所需的最小样本数 """
        return 4

    def estimateModel(self,
                      points,
                      sample,
                      sample_number,
                      weights=None):
        """ 从给定的样本点，加权拟合模型参数

        参数
        ----------
        points : numpy
            输入的数据点集
        sample : list
            用于估计模型的样本点序号列表
        sample_number : int
            样本点的数目
        weights : list
            数据点集中点的对应权重

        返回
        ----------
        list(Model)
            通过样本估计的模型列表
        """
        sample = self.sampleOf(sample, sample_number)
        if len(sample) < self.sampleSize():
            raise DegenerateSampleError("四点法样本数不足")

        normalized_points, src_transform, dst_transform = normalizeSamplePoints(points, sample)
        weights = self.weightsOf(weights, sample)

        x1 = normalized_points[:, 0]
        y1 = normalized_points[:, 1]
        x2 = normalized_points[:, 2]
        y2 = normalized_points[:, 3]
        zeros = np.zeros_like(x1)
        ones = np.ones_like(x1)

        # 每个点对提供两行方程
        coefficients = np.empty((2 * len(sample), 9))
        coefficients[0::2] = np.stack([-x1, -y1, -ones, zeros, zeros, zeros,
                                       x2 * x1, x2 * y1, x2], axis=1) * weights[:, None]
        coefficients[1::2] = np.stack([zeros, zeros, zeros, -x1, -y1, -ones,
                                       y2 * x1, y2 * y1, y2], axis=1) * weights[:, None]

        Sigma, VT = self.designMatrixSvd(coefficients)
        # 共线点使设计矩阵秩小于 8
        if len(Sigma) < 8 or Sigma[7] < self.rank_tolerance * Sigma[0]:
            raise DegenerateSampleError("四点法设计矩阵秩不足")
        descriptor = VT[-1].reshape(3, 3)

        # 解除归一化
        descriptor = np.dot(np.linalg.inv(dst_transform), np.dot(descriptor, src_transform))
        if abs(descriptor[2, 2]) > 1e-12:
            descriptor = descriptor / descriptor[2, 2]
        else:
            descriptor = descriptor / np.linalg.norm(descriptor)
        return [Homography(descriptor)]
