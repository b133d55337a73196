class GCRANSACError(Exception):
    """ GC-RANSAC 所有异常的基类 """


class DegenerateSampleError(GCRANSACError):
    """ 最小样本退化，无法确定唯一有效的模型 """


class EstimationFailure(GCRANSACError):
    """ 模型估计失败或候选模型未通过有效性检查 """


class OptimizationFailure(GCRANSACError):
    """ 图割求解失败，局部优化被中止 """


class InvalidConfigurationError(GCRANSACError, ValueError):
    """ 参数设置违反约束，算法不会开始运行 """


class InvalidInputError(GCRANSACError, ValueError):
    """ 输入的点集格式错误 """


class EmptyInputError(InvalidInputError):
    """ 点对数目小于最小样本数 """
