import logging

import maxflow
import numpy as np

from utils.exceptions import OptimizationFailure

logger = logging.getLogger(__name__)

# 单点能量的上限，避免无穷大残差进入最大流求解
MAX_UNARY_ENERGY = 1e6


class GraphCut:
    """ 使用 maxflow 进行 graphcut 的能量方程最小化求解

    标签 0 (SOURCE) 表示内点，标签 1 (SINK) 表示外点
    """

    def __init__(self):
        self.graph = None
        self.energy = 0.0

    def labeling(self,
                 squared_residuals,
                 neighborhood_graph,
                 lambda_,
                 threshold):
        """ 通过maxflow对Graph进行能量最小化求解，标记模型内点

        参数
        ----------
        squared_residuals : numpy
            当前模型下所有点的残差平方
        neighborhood_graph : GridNeighborhoodGraph
            当前数据点集的领域图
        lambda_ : float
            空间相干性能量项的权重，相邻两点标签不同时的代价
        threshold : float
            决定内点和外点的阈值

        返回
        ----------
        list
            标记的模型内点序号列表
        """
        point_number = len(squared_residuals)
        self.graph = maxflow.GraphFloat()  # 先构建空 Graph
        nodes = self.graph.add_nodes(point_number)

        # 数据项: 内点代价 残差^2/阈值^2，外点代价 1
        inlier_energy = np.minimum(np.asarray(squared_residuals, dtype=float) / threshold ** 2,
                                   MAX_UNARY_ENERGY)
        inlier_energy = np.nan_to_num(inlier_energy, nan=MAX_UNARY_ENERGY, posinf=MAX_UNARY_ENERGY)
        outlier_energy = np.ones(point_number)
        self.__addTerm1(nodes, inlier_energy, outlier_energy)

        # 空间相干性项: 相邻两点标签不同时代价为 lambda (Potts)，双向容量相同
        if lambda_ > 0 and neighborhood_graph is not None:
            sources, targets = neighborhood_graph.getEdges()
            if len(sources) > 0:
                capacities = np.full(len(sources), float(lambda_))
                # 新建的图中节点序号即点序号
                self.graph.add_edges(np.asarray(sources, dtype=int), np.asarray(targets, dtype=int),
                                     capacities, capacities)

        # 通过 maxflow 算法对图 G 进行能量最小化求解
        try:
            self.energy = self.graph.maxflow()
            segments = self.graph.get_grid_segments(nodes)
        except Exception as error:
            raise OptimizationFailure(f"maxflow failed: {error}") from error
        if not np.isfinite(self.energy):
            raise OptimizationFailure("maxflow returned a non-finite flow")

        # False 表示给定点属于 SOURCE，即内点
        return np.flatnonzero(~np.asarray(segments, dtype=bool)).tolist()

    def __addTerm1(self, x, E0, E1):
        ''' E(x=0) = E0, E(x=1) = E1 '''
        self.graph.add_grid_tedges(x, E1, E0)
