import random


class UniformRandomGenerator:
    """ 均匀随机数产生器 """

    def __init__(self, random_seed=None):
        self.range_min = 0       # 可取最小值
        self.range_max = 100000  # 可取最大值
        # 每个产生器持有独立的随机源，相同种子产生相同序列
        self.random = random.Random(random_seed)

    def resetGenerator(self, min, max):
        """ 设置随机数发生器的随机数范围

        参数
        ----------
        min : int
            可取最小值
        max : int
            可取最大值
        """
        self.range_min, self.range_max = min, max

    def generateUniqueRandomSet(self, sample_size, max=None):
        """ 产生一个均匀随机的不重复随机数序列

        参数
        ----------
        sample_size : int
            选取样本大小
        max : int 可选
            可取最大值

        返回
        ----------
        list
            产生的随机序列样本列表，范围不足时返回空列表
        """
        # 如果输入了最大值，则重设随机数发生器范围
        if max is not None:
            self.resetGenerator(0, max)
        population = range(self.range_min, self.range_max + 1)
        if sample_size > len(population):
            return []
        return self.random.sample(population, sample_size)
