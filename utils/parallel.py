import math as m
from concurrent.futures import ThreadPoolExecutor


class WorkerPool:
    """ 按 CPU 核心数划分点集的并行执行池

    只用于逐点残差计算和邻域图构建等相互独立的计算，
    RANSAC 主循环本身保持串行
    """

    def __init__(self, core_number=1):
        self.core_number = max(1, int(core_number))
        self.executor = None
        if self.core_number > 1:
            self.executor = ThreadPoolExecutor(max_workers=self.core_number)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.shutdown()

    def shutdown(self):
        if self.executor is not None:
            self.executor.shutdown(wait=True)
            self.executor = None

    def chunks(self, item_number):
        """ 将 [0, item_number) 划分为不超过 core_number 个连续区间 """
        if item_number <= 0:
            return []
        # 每个进程的步数
        step_size = m.ceil(item_number / self.core_number)
        return [(start, min(start + step_size, item_number))
                for start in range(0, item_number, step_size)]

    def mapChunks(self, function, item_number):
        """ 对每个区间调用 function(start, end)，按区间顺序返回结果列表

        参数
        ----------
        function : callable
            区间处理函数
        item_number : int
            需要处理的元素数目

        返回
        ----------
        list
            每个区间的处理结果
        """
        chunks = self.chunks(item_number)
        if self.executor is None or len(chunks) <= 1:
            return [function(start, end) for start, end in chunks]
        futures = [self.executor.submit(function, start, end) for start, end in chunks]
        return [future.result() for future in futures]
