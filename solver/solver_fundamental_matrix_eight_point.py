import numpy as np

from model import FundamentalMatrix
from utils.exceptions import DegenerateSampleError
from utils.normalization import normalizeSamplePoints

from .solver_engine import SolverEngine
from .solver_fundamental_matrix_seven_point import epipolarCoefficients


class SolverFundamentalMatrixEightPoint(SolverEngine):
    """ 归一化八点法求解基础矩阵模型参数，同时用于非最小样本的加权最小二乘拟合 """

    model_type = FundamentalMatrix

    def sampleSize(self):
        """ 模型参数估计所需的最小样本数 """
        return 8

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
            用于估计模型的样本点序号列表，为 None 时使用前 sample_number 个点
        sample_number : int
            样本点的数目
        weights : list 可选
            数据点集中点的对应权重，按点序号索引

        返回
        ----------
        list(Model)
            通过样本估计的模型列表
        """
        sample = self.sampleOf(sample, sample_number)
        if len(sample) < self.sampleSize():
            raise DegenerateSampleError("八点法样本数不足")

        normalized_points, src_transform, dst_transform = normalizeSamplePoints(points, sample)
        coefficients = epipolarCoefficients(normalized_points, self.weightsOf(weights, sample))

        # A * f = 0 的最小二乘解为 A 最小奇异值对应的右奇异向量
        Sigma, VT = self.designMatrixSvd(coefficients)
        if len(Sigma) < 8 or Sigma[7] < self.rank_tolerance * Sigma[0]:
            raise DegenerateSampleError("八点法设计矩阵秩不足")
        descriptor = self.enforceConstraint(VT[-1].reshape(3, 3))

        # 解除归一化
        descriptor = np.dot(np.dot(dst_transform.T, descriptor), src_transform)
        descriptor = self.enforceDenormalizedConstraint(descriptor)
        norm = np.linalg.norm(descriptor)
        if norm < 1e-20 or not np.isfinite(norm):
            raise DegenerateSampleError("求解的矩阵为零")
        return [self.model_type(descriptor / norm)]

    def enforceConstraint(self, descriptor):
        """ 强迫秩为 2 的约束 """
        U, Sigma, VT = np.linalg.svd(descriptor)
        Sigma[2] = 0.0
        return np.dot(U * Sigma, VT)

    def enforceDenormalizedConstraint(self, descriptor):
        """ 解除归一化后的约束，秩在可逆变换下不变，无需处理 """
        return descriptor
