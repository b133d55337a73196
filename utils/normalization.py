import math as m

import numpy as np

from .exceptions import DegenerateSampleError


def coordinateTolerance(points, ratio=1e-6):
    """ 与坐标量级成比例的距离下限，小于它的差异视为数值噪声 """
    magnitude = np.max(np.abs(points)) if np.size(points) > 0 else 0.0
    return ratio * max(1.0, float(magnitude))


def normalizingTransform(points, ratio=1e-6):
    """ 求解二维点集的各向同性归一化变换 (Hartley)

    变换后点集质心位于原点，到质心的平均距离为 sqrt(2)

    参数
    ----------
    points : numpy
        N x 2 的点坐标
    ratio : float
        平均距离相对于坐标量级的下限，小于该值视为点重合

    返回
    ----------
    numpy
        3 x 3 归一化变换矩阵
    """
    mass_point = np.mean(points, axis=0)
    average_distance = np.mean(np.sqrt(np.sum((points - mass_point) ** 2, axis=1)))
    # 所有点重合时无法归一化
    if not np.isfinite(average_distance) or average_distance < coordinateTolerance(points, ratio):
        raise DegenerateSampleError("样本点重合，无法归一化")

    scale = m.sqrt(2) / average_distance
    return np.array([[scale, 0.0, -scale * mass_point[0]],
                     [0.0, scale, -scale * mass_point[1]],
                     [0.0, 0.0, 1.0]])


def normalizeSamplePoints(data, sample):
    """ 归一化样本对应点集

    参数
    ----------
    data : numpy
        N x 4 的对应点集
    sample : list
        样本点序号列表

    返回
    ----------
    numpy, numpy, numpy
        归一化坐标 (len(sample) x 4)，源图像转换矩阵，目标图像转换矩阵
    """
    sample_points = data[np.asarray(sample, dtype=int)]
    src_transform = normalizingTransform(sample_points[:, 0:2])
    dst_transform = normalizingTransform(sample_points[:, 2:4])

    normalized_points = np.empty_like(sample_points, dtype=float)
    normalized_points[:, 0:2] = transformPoints(sample_points[:, 0:2], src_transform)
    normalized_points[:, 2:4] = transformPoints(sample_points[:, 2:4], dst_transform)
    return normalized_points, src_transform, dst_transform


def transformPoints(points, transform):
    """ 对 N x 2 点集应用 3 x 3 射影变换 """
    homogeneous = np.c_[points, np.ones(np.shape(points)[0])]
    transformed = np.dot(homogeneous, transform.T)
    return transformed[:, 0:2] / transformed[:, 2:3]


def homogeneous(points):
    """ N x 2 点集转为齐次坐标 N x 3 """
    return np.c_[points, np.ones(np.shape(points)[0])]
