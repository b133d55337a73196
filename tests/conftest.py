import numpy as np
import pytest

# 合成双视图场景使用的相机内参
INTRINSICS = np.array([[800.0, 0.0, 320.0],
                       [0.0, 800.0, 240.0],
                       [0.0, 0.0, 1.0]])

TRUE_HOMOGRAPHY = np.array([[1.08, 0.04, 25.0],
                            [-0.03, 0.96, 12.0],
                            [1.2e-4, 6e-5, 1.0]])


def rotationMatrix(rx, ry, rz):
    cx, sx = np.cos(rx), np.sin(rx)
    cy, sy = np.cos(ry), np.sin(ry)
    cz, sz = np.cos(rz), np.sin(rz)
    Rx = np.array([[1, 0, 0], [0, cx, -sx], [0, sx, cx]])
    Ry = np.array([[cy, 0, sy], [0, 1, 0], [-sy, 0, cy]])
    Rz = np.array([[cz, -sz, 0], [sz, cz, 0], [0, 0, 1]])
    return Rz @ Ry @ Rx


def skew(vector):
    return np.array([[0, -vector[2], vector[1]],
                     [vector[2], 0, -vector[0]],
                     [-vector[1], vector[0], 0]])


def project(points_3d, rotation, translation):
    camera_points = points_3d @ rotation.T + translation
    image_points = camera_points @ INTRINSICS.T
    return image_points[:, 0:2] / image_points[:, 2:3]


class TwoViewScene:
    """ 已知基础矩阵的合成点对，前 inlier_number 个真实点对被随机打乱 """

    def __init__(self, point_number=200, inlier_number=140, seed=0, noise=0.0):
        rng = np.random.default_rng(seed)
        self.rotation = rotationMatrix(0.02, -0.08, 0.03)
        self.translation = np.array([1.0, 0.1, 0.05])
        self.essential_matrix = skew(self.translation) @ self.rotation
        inverse_intrinsics = np.linalg.inv(INTRINSICS)
        self.fundamental_matrix = inverse_intrinsics.T @ self.essential_matrix @ inverse_intrinsics

        points_3d = rng.uniform([-2.0, -1.5, 4.0], [2.0, 1.5, 8.0], (inlier_number, 3))
        src = project(points_3d, np.eye(3), np.zeros(3))
        dst = project(points_3d, self.rotation, self.translation)
        inliers = np.c_[src, dst] + rng.normal(0.0, noise, (inlier_number, 4)) if noise > 0 else np.c_[src, dst]
        outliers = np.c_[rng.uniform([0, 0], [640, 480], (point_number - inlier_number, 2)),
                         rng.uniform([0, 0], [640, 480], (point_number - inlier_number, 2))]

        order = rng.permutation(point_number)
        self.points = np.r_[inliers, outliers][order]
        self.true_inliers = sorted(np.flatnonzero(order < inlier_number).tolist())


class HomographyScene:
    """ 已知单应矩阵的合成点对 """

    def __init__(self, point_number=200, inlier_number=150, seed=0):
        rng = np.random.default_rng(seed)
        src = rng.uniform([0, 0], [640, 480], (inlier_number, 2))
        transformed = np.c_[src, np.ones(inlier_number)] @ TRUE_HOMOGRAPHY.T
        dst = transformed[:, 0:2] / transformed[:, 2:3]
        outliers = rng.uniform([0, 0, 0, 0], [640, 480, 640, 480], (point_number - inlier_number, 4))

        order = rng.permutation(point_number)
        self.homography = TRUE_HOMOGRAPHY
        self.points = np.r_[np.c_[src, dst], outliers][order]
        self.true_inliers = sorted(np.flatnonzero(order < inlier_number).tolist())


def sameUpToScale(matrix1, matrix2):
    """ 两个矩阵在相差一个非零尺度 (含符号) 时的距离 """
    a = matrix1 / np.linalg.norm(matrix1)
    b = matrix2 / np.linalg.norm(matrix2)
    return min(np.linalg.norm(a - b), np.linalg.norm(a + b))


@pytest.fixture
def scene():
    return TwoViewScene()


@pytest.fixture
def homography_scene():
    return HomographyScene()
