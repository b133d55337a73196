import logging

import numpy as np

from estimator import (EstimatorEssential, EstimatorFundamental,
                       EstimatorHomography)
from neighbor import GridNeighborhoodGraph

from .gcransac import GCRANSAC, Settings

logger = logging.getLogger(__name__)


def __transformInliersToMask(inliers, point_number):
    """ 转换 inliers 内点序号列表为 cv2 match 所需的 mask

    参数
    --------
    inliers : list
        内点序号列表
    point_number : int
        点集的数目

    返回
    --------
    numpy
        包含 0 1 的 mask 数组
    """
    mask = np.zeros(point_number, dtype=np.uint8)
    mask[np.asarray(inliers, dtype=int)] = 1
    return mask


def __stackCorrespondences(src_points, dst_points):
    """ 合并points到同个矩阵：src在前两列，dst在后两列 """
    src_points = np.asarray(src_points, dtype=float).reshape(-1, 2)
    dst_points = np.asarray(dst_points, dtype=float).reshape(-1, 2)
    if np.shape(src_points)[0] != np.shape(dst_points)[0]:
        raise ValueError("source and destination point sets differ in size")
    return np.c_[src_points, dst_points]


def __settings(threshold, conf, max_iters, min_iters, spatial_coherence_weight,
               neighborhood_size, max_local_optimization_number, fps, core_number, random_seed):
    return Settings(threshold=threshold,
                    confidence=conf,
                    max_iteration_number=max_iters,
                    min_iteration_number=min(50, max_iters) if min_iters is None else min_iters,
                    spatial_coherence_weight=spatial_coherence_weight,
                    neighborhood_sphere_radius=neighborhood_size,
                    max_local_optimization_number=max_local_optimization_number,
                    fps=fps,
                    core_number=core_number,
                    random_seed=random_seed)


def __runGCRANSAC(points, estimator, settings, neighborhood_graph=None):
    """ 运行 GC-RANSAC 并输出统计信息 """
    gcransac = GCRANSAC(settings)
    model, inliers = gcransac.run(points,
                                  estimator,
                                  neighborhood_graph=neighborhood_graph)

    statistics = gcransac.statistics
    logger.info("Elapsed time = %f secs", statistics.processing_time)
    logger.info("Inlier number = %d", statistics.inlier_number)
    logger.info("Applied number of local optimizations = %d", statistics.local_optimization_number)
    logger.info("Applied number of graph-cuts = %d", statistics.graph_cut_number)
    logger.info("Number of iterations = %d", statistics.iteration_number)
    if statistics.time_limit_reached:
        logger.info("Time limit reached, the result is the best model found so far")
    return model, inliers, statistics


""" 用于特征点匹配，对应矩阵求解的函数 """
def findHomography(src_points, dst_points, threshold=1.0, conf=0.99, max_iters=10000,
                   min_iters=None, spatial_coherence_weight=0.14, neighborhood_size=20.0,
                   max_local_optimization_number=20, fps=-1, core_number=1, random_seed=None):
    """ 单应矩阵求解

    参数
    --------
    src_points : numpy
        源图像特征点集合
    dst_points : numpy
        目标图像特征点集合
    threshold : float
        决定内点和外点的阈值 (像素)
    conf : float
        RANSAC置信参数
    max_iters : int
        RANSAC算法最大迭代次数
    min_iters : int 可选
        RANSAC算法最小迭代次数，未给定时为 50 (不超过 max_iters)
    spatial_coherence_weight : float
        空间相干性能量权重
    neighborhood_size : float
        领域球半径
    fps : float
        每秒帧数限制，-1 表示不限制
    core_number : int
        并行计算使用的核心数
    random_seed : int
        随机采样的种子

    返回
    --------
    numpy, numpy
        单应矩阵 (未找到时为 None)，标注内点和外点的mask
    """
    points = __stackCorrespondences(src_points, dst_points)
    settings = __settings(threshold, conf, max_iters, min_iters, spatial_coherence_weight,
                          neighborhood_size, max_local_optimization_number, fps, core_number, random_seed)

    model, inliers, _ = __runGCRANSAC(points, EstimatorHomography(), settings)
    H = None if model is None else model.descriptor
    return H, __transformInliersToMask(inliers, np.shape(points)[0])


def findFundamentalMat(src_points, dst_points, threshold=1.0, conf=0.99, max_iters=10000,
                       min_iters=None, spatial_coherence_weight=0.14, neighborhood_size=20.0,
                       max_local_optimization_number=20, fps=-1, core_number=1, random_seed=None):
    """ 基础矩阵求解，约定 dst' * F * src = 0

    参数与 findHomography 相同

    返回
    --------
    numpy, numpy
        基础矩阵 (未找到时为 None)，标注内点和外点的mask
    """
    points = __stackCorrespondences(src_points, dst_points)
    settings = __settings(threshold, conf, max_iters, min_iters, spatial_coherence_weight,
                          neighborhood_size, max_local_optimization_number, fps, core_number, random_seed)

    model, inliers, _ = __runGCRANSAC(points, EstimatorFundamental(), settings)
    F = None if model is None else model.descriptor
    return F, __transformInliersToMask(inliers, np.shape(points)[0])


def findEssentialMat(src_points, dst_points, src_K, dst_K, threshold=1.0, conf=0.99, max_iters=10000,
                     min_iters=None, spatial_coherence_weight=0.14, neighborhood_size=20.0,
                     max_local_optimization_number=20, fps=-1, core_number=1, random_seed=None):
    """ 本质矩阵求解

    参数
    --------
    src_points : numpy
        源图像特征点集合 (像素坐标)
    dst_points : numpy
        目标图像特征点集合 (像素坐标)
    src_K : numpy
        源图像相机内参矩阵
    dst_K : numpy
        目标图像相机内参矩阵
    其余参数与 findHomography 相同，threshold 以像素为单位

    返回
    --------
    numpy, numpy
        本质矩阵 (未找到时为 None)，标注内点和外点的mask
    """
    points = __stackCorrespondences(src_points, dst_points)
    estimator = EstimatorEssential(intrinsics_src=src_K, intrinsics_dst=dst_K)

    # 邻域图在像素坐标下构建，模型在归一化坐标下估计
    neighborhood_graph = GridNeighborhoodGraph(points, neighborhood_size)
    normalized_points = estimator.normalizeCorrespondences(points)
    settings = __settings(estimator.thresholdInNormalizedCoordinates(threshold), conf, max_iters, min_iters,
                          spatial_coherence_weight, neighborhood_size, max_local_optimization_number,
                          fps, core_number, random_seed)

    model, inliers, _ = __runGCRANSAC(normalized_points, estimator, settings,
                                      neighborhood_graph=neighborhood_graph)
    E = None if model is None else model.descriptor
    return E, __transformInliersToMask(inliers, np.shape(points)[0])
