from utils.uniform_random_generator import UniformRandomGenerator

from .sampler import Sampler


class UniformSampler(Sampler):
    """ 均匀随机采样器，无放回地抽取互不相同的序号 """

    def __init__(self, container, random_seed=None):
        super().__init__(container)
        self.random_generator = UniformRandomGenerator(random_seed)

    def sample(self, pool, sample_size):
        """ 根据给定的采样池和样本大小进行采样

        参数
        ----------
        pool : list(int)
            采样的数据集合的序号池
        sample_size : int
            采样的样本数

        返回
        ----------
        list
            采样的数据集合序号列表，采样池不足时为空列表
        """
        if sample_size > len(pool):
            return []
        # 生成采样池位置的随机序列，再用 pool 中的索引替换
        subset = self.random_generator.generateUniqueRandomSet(sample_size, max=len(pool) - 1)
        return [pool[i] for i in subset]
