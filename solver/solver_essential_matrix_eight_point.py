import numpy as np

from model import EssentialMatrix

from .solver_fundamental_matrix_eight_point import SolverFundamentalMatrixEightPoint


class SolverEssentialMatrixEightPoint(SolverFundamentalMatrixEightPoint):
    """ 八点法求解本质矩阵模型参数，输入点须已用相机内参归一化 """

    model_type = EssentialMatrix

    def enforceDenormalizedConstraint(self, descriptor):
        """ 本质矩阵两个非零奇异值相等

        归一化变换会改变奇异值，因此在解除归一化之后施加
        """
        U, Sigma, VT = np.linalg.svd(descriptor)
        constrain = (Sigma[0] + Sigma[1]) / 2
        return np.dot(U * np.array([constrain, constrain, 0.0]), VT)
