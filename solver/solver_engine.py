import numpy as np


class SolverEngine:
    """ 模型参数求解器基类 """

    # 设计矩阵最小奇异值与最大奇异值之比的下限，低于该值视为样本退化
    rank_tolerance = 1e-8

    def __init__(self):
        pass

    def sampleSize(self):
        """ 模型参数估计所需的最小样本数 """
        return 0

    def estimateModel(self,
                      points,
                      sample,
                      sample_number,
                      weights=None):
        """ 从给定的样本点，加权拟合模型参数

        样本退化时抛出 DegenerateSampleError
        """
        raise NotImplementedError

    @staticmethod
    def sampleOf(sample, sample_number):
        """ sample 为 None 时使用前 sample_number 个点 """
        if sample is None:
            return list(range(sample_number))
        return list(sample[:sample_number])

    @staticmethod
    def weightsOf(weights, sample):
        """ 取出样本点对应的权重，未给定权重时全部为 1 """
        if weights is None:
            return np.ones(len(sample))
        return np.asarray(weights, dtype=float)[np.asarray(sample, dtype=int)]

    @staticmethod
    def designMatrixSvd(coefficients):
        """ 设计矩阵 A 的奇异值和完整的 9 x 9 右奇异矩阵

        行数不少于列数时用精简分解，不生成随点数平方增长的 U；
        行数更少时需要完整分解才能得到零空间
        """
        full_matrices = np.shape(coefficients)[0] < np.shape(coefficients)[1]
        _, Sigma, VT = np.linalg.svd(coefficients, full_matrices=full_matrices)
        return Sigma, VT
