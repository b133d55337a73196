import numpy as np

from model import FundamentalMatrix
from utils.exceptions import DegenerateSampleError
from utils.normalization import normalizeSamplePoints

from .solver_engine import SolverEngine


def epipolarCoefficients(normalized_points, weights):
    """ 构成线性系统：第 i 行表示方程 (m2[i], 1)' * F * (m1[i], 1) = 0 """
    x0 = normalized_points[:, 0]
    y0 = normalized_points[:, 1]
    x1 = normalized_points[:, 2]
    y1 = normalized_points[:, 3]
    ones = np.ones_like(x0)
    coefficients = np.stack([x1 * x0, x1 * y0, x1,
                             y1 * x0, y1 * y0, y1,
                             x0, y0, ones], axis=1)
    return coefficients * weights[:, None]


class SolverFundamentalMatrixSevenPoint(SolverEngine):
    """ 七点法求解基础矩阵模型参数 """

    def sampleSize(self):
        """ 模型参数估计所需的最小样本数 """
        return 7

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
        weights : list 可选
            数据点集中点的对应权重

        返回
        ----------
        list(Model)
            通过样本估计的模型列表，最多三个
        """
        sample = self.sampleOf(sample, sample_number)

        ''' 1. 归一化 '''
        normalized_points, src_transform, dst_transform = normalizeSamplePoints(points, sample)

        ''' 2. 求解零空间 '''
        coefficients = epipolarCoefficients(normalized_points, self.weightsOf(weights, sample))
        Sigma, VT = self.designMatrixSvd(coefficients)
        # 7 个方程 9 个未知数，零空间必须恰好是二维的
        if Sigma[-1] < self.rank_tolerance * Sigma[0]:
            raise DegenerateSampleError("七点法设计矩阵秩不足")
        f1 = VT[7].reshape(3, 3)
        f2 = VT[8].reshape(3, 3)

        ''' 3. 秩约束 det(a * f1 + (1 - a) * f2) = 0 '''
        # 行列式是 a 的三次多项式，用四个采样值插值得到系数
        alphas = np.array([-1.0, 0.0, 1.0, 2.0])
        determinants = [np.linalg.det(a * f1 + (1.0 - a) * f2) for a in alphas]
        c = np.polyfit(alphas, determinants, 3)

        # 解三次方程；可以有1到3个实根
        roots = np.roots(c)
        real_roots = roots[np.abs(roots.imag) <= 1e-8 * np.maximum(1.0, np.abs(roots))].real

        ''' 4. 解除归一化 '''
        models = []
        for alpha in real_roots:
            descriptor = alpha * f1 + (1.0 - alpha) * f2
            descriptor = np.dot(np.dot(dst_transform.T, descriptor), src_transform)
            norm = np.linalg.norm(descriptor)
            if norm < 1e-20 or not np.isfinite(norm):
                continue
            models.append(FundamentalMatrix(descriptor / norm))
        return models
