import itertools
import logging

import numpy as np

logger = logging.getLogger(__name__)

# 构建领域图时使用的坐标列
NEIGHBORHOOD_SPACES = {
    "source": slice(0, 2),
    "destination": slice(2, 4),
    "joint": slice(0, 4),
}


class GridNeighborhoodGraph:
    """ 邻域图

    点对在选定坐标空间中的欧氏距离不大于 radius 时相邻。点按边长为 radius 的网格
    存储，查询一个点时只需要检查其所在格子及周围相邻的格子
    """

    def __init__(self,
                 container,
                 radius,
                 space="joint",
                 pool=None):
        """ 构建领域图，构建后不再修改

        参数
        ----------
        container : numpy
            N x 4 的点对集合
        radius : float
            领域球半径
        space : str
            计算距离的坐标空间 "source", "destination" 或 "joint"
        pool : WorkerPool 可选
            并行计算每个格子的邻居
        """
        if space not in NEIGHBORHOOD_SPACES:
            raise ValueError(f"Unknown neighborhood space '{space}'")
        if radius <= 0:
            raise ValueError("Neighborhood radius must be positive")

        self.container = container      # 存储的点集
        self.radius = float(radius)
        self.space = space
        self.neighbor_number = 0        # 所有相邻的点边
        self.grid = {}                  # 格子坐标 -> 点序号数组
        self.neighbors = []             # 每个点的邻居序号数组

        self.__initialize(np.asarray(container, dtype=float)[:, NEIGHBORHOOD_SPACES[space]], pool)

    def __initialize(self, coordinates, pool):
        point_number = np.shape(coordinates)[0]
        cell_indices = np.floor(coordinates / self.radius).astype(np.int64)

        # 存储点序号到 Cell 中
        cells = {}
        for point_idx, cell in enumerate(map(tuple, cell_indices)):
            cells.setdefault(cell, []).append(point_idx)
        self.grid = {cell: np.array(points_idx, dtype=int) for cell, points_idx in cells.items()}

        cell_list = list(self.grid.keys())
        offsets = list(itertools.product((-1, 0, 1), repeat=np.shape(coordinates)[1]))
        squared_radius = self.radius ** 2

        def findNeighbors(start, end):
            found = []
            for cell in cell_list[start:end]:
                points_idx = self.grid[cell]
                # 相邻格子中的所有候选点
                candidates = [self.grid[neighbor_cell]
                              for neighbor_cell in (tuple(c + o for c, o in zip(cell, offset)) for offset in offsets)
                              if neighbor_cell in self.grid]
                candidates = np.concatenate(candidates)
                differences = coordinates[points_idx][:, None, :] - coordinates[candidates][None, :, :]
                within = np.sum(differences ** 2, axis=2) <= squared_radius
                for row, point_idx in enumerate(points_idx):
                    neighbors = candidates[within[row]]
                    found.append((point_idx, np.sort(neighbors[neighbors != point_idx])))
            return found

        if pool is None:
            blocks = [findNeighbors(0, len(cell_list))]
        else:
            blocks = pool.mapChunks(findNeighbors, len(cell_list))

        self.neighbors = [np.zeros(0, dtype=int) for _ in range(point_number)]
        for block in blocks:
            for point_idx, neighbors in block:
                self.neighbors[point_idx] = neighbors

        # 每条无向边被两个端点各计一次
        self.neighbor_number = int(sum(len(neighbors) for neighbors in self.neighbors) // 2)
        logger.debug("Neighborhood graph: %d points, %d cells, %d edges",
                     point_number, len(self.grid), self.neighbor_number)

    def getNeighbors(self, point_idx):
        """ 获取临域图中此序号点的邻居点序号集合

        参数
        ----------
        point_idx : int
            查询的点序号

        返回
        ----------
        list
            查询点所有邻居点序号列表，不含自身
        """
        return self.neighbors[point_idx].tolist()

    def getEdges(self):
        """ 返回所有无向边 (i, j)，i < j，每条边只出现一次 """
        sources, targets = [], []
        for point_idx, neighbors in enumerate(self.neighbors):
            upper = neighbors[neighbors > point_idx]
            sources.append(np.full(len(upper), point_idx, dtype=int))
            targets.append(upper)
        if len(sources) == 0:
            return np.zeros(0, dtype=int), np.zeros(0, dtype=int)
        return np.concatenate(sources), np.concatenate(targets)

    def __len__(self):
        return len(self.neighbors)
