import sys

import numpy as np

from solver import (SolverFundamentalMatrixEightPoint,
                    SolverFundamentalMatrixSevenPoint)
from utils.normalization import homogeneous

from .estimator import Estimator


class EstimatorFundamental(Estimator):
    """ 基础矩阵估计器，约定 x2' * F * x1 = 0 """

    def __init__(self,
                 minimalSolver=SolverFundamentalMatrixSevenPoint,
                 nonMinimalSolver=SolverFundamentalMatrixEightPoint,
                 minimum_inlier_ratio_in_validity_check=0.5):
        super().__init__(minimalSolver, nonMinimalSolver)
        # 通过有效性测试所需的内点比率的下限
        self.minimum_inlier_ratio_in_validity_check = minimum_inlier_ratio_in_validity_check

    def squaredResiduals(self, data, model):
        """ 给定模型和数据点集，计算 Sampson 距离 """
        return self.sampsonDistances(data, model.descriptor)

    def isValidMinimalModel(self, model, data, sample):
        """ 最小样本模型须满足对极约束的朝向一致性 """
        return self.isOrientationValid(model.descriptor, data, sample)

    def isValidModel(self,
                     model,
                     data=None,
                     inliers=None,
                     minimal_sample=None,
                     threshold=None):
        """ 检查模型是否有效
        通过检查具有对称极距的内点数验证模型，而不是 sampson 距离。Sampson 距离更准确，
        但对称极距对退化解更具鲁棒性

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
        if not super().isValidModel(model):
            return False
        if data is None or inliers is None or threshold is None or len(inliers) == 0:
            return True

        # 当使用对称极距而不是 Sampson 距离时，也应该是内点的最小数
        minimum_inlier_number = min(len(inliers),
                                    max(self.sampleSize(),
                                        len(inliers) * self.minimum_inlier_ratio_in_validity_check))
        distances = self.symmetricEpipolarDistances(data[np.asarray(inliers, dtype=int)],
                                                    model.descriptor)
        return int(np.count_nonzero(distances < threshold ** 2)) >= minimum_inlier_number

    ''' 距离计算工具函数 '''
    @staticmethod
    def sampsonDistances(data, descriptor):
        """ 点对应与基础矩阵的 sampson 距离 """
        x1 = homogeneous(data[:, 0:2])
        x2 = homogeneous(data[:, 2:4])

        f_x1 = np.dot(x1, descriptor.T)
        x2_f = np.dot(x2, descriptor)
        x2_f_x1 = np.sum(x2 * f_x1, axis=1)

        with np.errstate(divide='ignore', invalid='ignore'):
            return x2_f_x1 ** 2 / (f_x1[:, 0] ** 2 + f_x1[:, 1] ** 2 + x2_f[:, 0] ** 2 + x2_f[:, 1] ** 2)

    @staticmethod
    def symmetricEpipolarDistances(data, descriptor):
        """ 点对应与基础矩阵的 对称极线距离 """
        x1 = homogeneous(data[:, 0:2])
        x2 = homogeneous(data[:, 2:4])

        f_x1 = np.dot(x1, descriptor.T)
        x2_f = np.dot(x2, descriptor)
        x2_f_x1 = np.sum(x2 * f_x1, axis=1)

        with np.errstate(divide='ignore', invalid='ignore'):
            return x2_f_x1 ** 2 * (1.0 / (f_x1[:, 0] ** 2 + f_x1[:, 1] ** 2) +
                                   1.0 / (x2_f[:, 0] ** 2 + x2_f[:, 1] ** 2))

    ''' 对极约束函数 Oriented epipolar constraints '''
    @staticmethod
    def getEpipole(fundamental_matrix):
        epsilon = sys.float_info.epsilon
        epipole = np.cross(fundamental_matrix[0], fundamental_matrix[2])
        if np.any(np.abs(epipole) > epsilon):
            return epipole
        return np.cross(fundamental_matrix[1], fundamental_matrix[2])

    def isOrientationValid(self, fundamental_matrix, data, sample):
        """ 检查朝向约束是否有效

        参数
        ---------
        fundamental_matrix : numpy
            基础矩阵
        data : numpy
            数据点集合
        sample : list
            样本点序号列表

        返回
        ---------
        bool
            朝向约束是否有效
        """
        epipole = self.getEpipole(fundamental_matrix)
        points = data[np.asarray(sample, dtype=int)]

        signum1 = fundamental_matrix[0, 0] * points[:, 2] + \
            fundamental_matrix[1, 0] * points[:, 3] + fundamental_matrix[2, 0]
        signum2 = epipole[1] - epipole[2] * points[:, 1]
        signums = signum1 * signum2
        # 符号应该相等，否则，基本矩阵无效
        return not np.any(signums[0] * signums < 0)
