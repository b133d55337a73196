import numpy as np


class Model:
    """ RANSAC算法求解模型基类

    模型一旦产生便不再修改，优化过程总是产生新的模型
    """

    def __init__(self, descriptor=None):
        self.descriptor = None if descriptor is None else np.array(descriptor, dtype=float)

    @property
    def is_valid(self):
        """ 模型参数存在且全部为有限值 """
        return self.descriptor is not None and bool(np.all(np.isfinite(self.descriptor)))

    def __repr__(self):
        return f"{type(self).__name__}({self.descriptor!r})"


class FundamentalMatrix(Model):
    """ 特征点匹配的基本矩阵模型 """


class EssentialMatrix(FundamentalMatrix):
    """ 特征点匹配的本质矩阵模型 """


class Homography(Model):
    """ 特征点匹配的单应矩阵模型 """
