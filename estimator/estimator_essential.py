import numpy as np

from solver import SolverEssentialMatrixEightPoint
from utils.normalization import transformPoints

from .estimator_fundamental import EstimatorFundamental


class EstimatorEssential(EstimatorFundamental):
    """ 本质矩阵估计器，数据点须已用相机内参归一化 """

    def __init__(self,
                 minimalSolver=SolverEssentialMatrixEightPoint,
                 nonMinimalSolver=SolverEssentialMatrixEightPoint,
                 intrinsics_src=None,
                 intrinsics_dst=None,
                 minimum_inlier_ratio_in_validity_check=0.5):
        super().__init__(minimalSolver,
                         nonMinimalSolver,
                         minimum_inlier_ratio_in_validity_check=minimum_inlier_ratio_in_validity_check)
        self.intrinsics_src = np.eye(3) if intrinsics_src is None else np.asarray(intrinsics_src, dtype=float)
        self.intrinsics_dst = np.eye(3) if intrinsics_dst is None else np.asarray(intrinsics_dst, dtype=float)

    def normalizeCorrespondences(self, points):
        """ 通过内参矩阵归一化点集，返回新的点集

        参数
        --------
        points : numpy
            像素坐标下的 N x 4 点集

        返回
        --------
        numpy
            归一化图像坐标下的 N x 4 点集
        """
        normalized_points = np.empty_like(points, dtype=float)
        normalized_points[:, 0:2] = transformPoints(points[:, 0:2], np.linalg.inv(self.intrinsics_src))
        normalized_points[:, 2:4] = transformPoints(points[:, 2:4], np.linalg.inv(self.intrinsics_dst))
        return normalized_points

    def thresholdInNormalizedCoordinates(self, threshold):
        """ 将像素阈值换算为归一化坐标下的阈值 """
        focal_length = (self.intrinsics_src[0, 0] + self.intrinsics_src[1, 1] +
                        self.intrinsics_dst[0, 0] + self.intrinsics_dst[1, 1]) / 4.0
        return threshold / focal_length
