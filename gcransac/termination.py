import math as m
import sys
import time


class TerminationCriterion:
    """ 自适应迭代次数上限和运行时间限制

    每当接受新的最佳模型时重新计算
    k = ceil( log(1 - confidence) / log(1 - w^m) )
    并限制在 [min_iteration_number, max_iteration_number] 之间
    """

    def __init__(self, settings, point_number, sample_size):
        self.confidence = settings.confidence
        self.min_iteration_number = settings.min_iteration_number
        self.max_iteration_number = settings.max_iteration_number
        self.time_limit = settings.time_limit
        self.point_number = point_number
        self.sample_size = sample_size

        # 尚无模型时只受最大迭代次数限制
        self.max_iteration = self.max_iteration_number
        self.start_time = None
        self.time_limit_reached = False

    def start(self):
        self.start_time = time.perf_counter()
        self.time_limit_reached = False

    def elapsedTime(self):
        if self.start_time is None:
            return 0.0
        return time.perf_counter() - self.start_time

    # H(|L∗|, µ)
    def getIterationNumber(self, inlier_number):
        """ 计算当前内点数目期望的迭代数目，已限制在最小和最大迭代次数之间 """
        inlier_ratio = float(inlier_number) / self.point_number  # η
        Pi = inlier_ratio ** self.sample_size
        if Pi < sys.float_info.epsilon:
            iteration_number = self.max_iteration_number
        elif Pi >= 1.0:
            iteration_number = 0
        else:
            log1 = m.log(1.0 - self.confidence)
            log2 = m.log1p(-Pi)
            iteration_number = m.ceil(log1 / log2)
        return int(min(max(iteration_number, self.min_iteration_number), self.max_iteration_number))

    def update(self, inlier_number):
        """ 接受新的最佳模型后更新迭代上限 """
        self.max_iteration = self.getIterationNumber(inlier_number)
        return self.max_iteration

    def isTimeLimitReached(self):
        return self.time_limit is not None and self.elapsedTime() > self.time_limit

    def shouldStop(self, iteration_number):
        """ 每次迭代开始前检查一次是否应当终止 """
        if iteration_number >= self.max_iteration:
            return True
        if self.isTimeLimitReached():
            self.time_limit_reached = True
            return True
        return False
