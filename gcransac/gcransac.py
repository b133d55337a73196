import dataclasses
import enum
import logging

import numpy as np

from neighbor import NEIGHBORHOOD_SPACES, GridNeighborhoodGraph
from sampler import UniformSampler
from utils.exceptions import (EmptyInputError, InvalidConfigurationError,
                              InvalidInputError, OptimizationFailure)
from utils.parallel import WorkerPool
from utils.score import MSACScoringFunction, Score

from .local_optimization import GraphCutLocalOptimizer
from .termination import TerminationCriterion

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Settings:
    """ GC-RANSAC 参数设置，构造时检查一次，运行期间不可修改 """

    do_final_iterated_least_squares: bool = True     # 是否执行最后的最小二乘拟合模型
    do_local_optimization: bool = True               # 是否需要局部优化拟合模型
    use_inlier_limit: bool = False                   # 是否确定内点限制以加速局部优化过程

    min_iteration_number: int = 20                   # 全局最小迭代次数
    max_iteration_number: int = 32767                # 全局最大迭代次数
    min_iteration_number_before_lo: int = 0          # 执行局部优化前最小迭代次数
    max_local_optimization_number: int = 10          # 局部优化最大迭代次数
    max_least_squares_iterations: int = 10           # 最小二乘法拟合的最大迭代次数
    core_number: int = 1                             # CPU 核心数目

    confidence: float = 0.95                         # 结果的置信率
    threshold: float = 2.0                           # 决定内点和外点的阈值
    neighborhood_sphere_radius: float = 20.0         # 构建领域图的区域半径
    neighborhood_space: str = "joint"                # 构建领域图的坐标空间
    spatial_coherence_weight: float = 0.14           # 空间相干性能量权重
    fps: float = -1                                  # 每秒帧数限制，-1 表示不限制运行时间
    random_seed: int = None                          # 随机采样的种子

    def __post_init__(self):
        if not 0.0 < self.confidence < 1.0:
            raise InvalidConfigurationError(f"confidence must be in (0, 1), got {self.confidence}")
        if not self.threshold > 0:
            raise InvalidConfigurationError(f"threshold must be positive, got {self.threshold}")
        if not self.spatial_coherence_weight >= 0:
            raise InvalidConfigurationError(
                f"spatial_coherence_weight must be non-negative, got {self.spatial_coherence_weight}")
        if not self.neighborhood_sphere_radius > 0:
            raise InvalidConfigurationError(
                f"neighborhood_sphere_radius must be positive, got {self.neighborhood_sphere_radius}")
        if self.neighborhood_space not in NEIGHBORHOOD_SPACES:
            raise InvalidConfigurationError(f"unknown neighborhood_space '{self.neighborhood_space}'")
        for name in ("max_local_optimization_number",
                     "max_least_squares_iterations",
                     "min_iteration_number",
                     "min_iteration_number_before_lo"):
            if getattr(self, name) < 0:
                raise InvalidConfigurationError(f"{name} must be non-negative, got {getattr(self, name)}")
        if self.min_iteration_number > self.max_iteration_number:
            raise InvalidConfigurationError(
                f"min_iteration_number ({self.min_iteration_number}) exceeds "
                f"max_iteration_number ({self.max_iteration_number})")
        if self.core_number < 1:
            raise InvalidConfigurationError(f"core_number must be at least 1, got {self.core_number}")
        if not (self.fps == -1 or self.fps > 0):
            raise InvalidConfigurationError(f"fps must be -1 or positive, got {self.fps}")

    @property
    def time_limit(self):
        """ 由 FPS 换算得到的时间限制 (秒)，不限制时为 None """
        if self.fps == -1:
            return None
        return 1.0 / self.fps

    def replace(self, **changes):
        """ 返回修改了部分参数的新设置，同样会被检查 """
        return dataclasses.replace(self, **changes)


class Statistics:
    """ 一次运行的统计信息，只增不减，运行结束时确定 """

    def __init__(self):
        self.iteration_number = 0
        self.local_optimization_number = 0
        self.graph_cut_number = 0
        self.inlier_number = 0
        self.processing_time = 0.0
        self.neighbor_number = 0
        self.degenerate_sample_number = 0
        self.invalid_model_number = 0
        self.failed_local_optimization_number = 0
        self.time_limit_reached = False   # 提前终止时结果只是目前为止的最佳模型
        self.inliers = []
        self.best_inlier_numbers = []     # 每次接受新最佳模型时的内点数目

    def __repr__(self):
        return (f"Statistics(iteration_number={self.iteration_number}, "
                f"local_optimization_number={self.local_optimization_number}, "
                f"graph_cut_number={self.graph_cut_number}, "
                f"inlier_number={self.inlier_number}, "
                f"processing_time={self.processing_time:.4f}, "
                f"time_limit_reached={self.time_limit_reached})")


class State(enum.Enum):
    INITIALIZED = "initialized"
    RUNNING = "running"
    TERMINATED = "terminated"


class GCRANSAC:

    def __init__(self, settings=None):
        # 设置初始化
        self.settings = settings if settings is not None else Settings()
        if not isinstance(self.settings, Settings):
            raise InvalidConfigurationError("settings must be a gcransac.Settings instance")
        self.statistics = Statistics()
        self.state = State.INITIALIZED

        # 设置 estimator 和 gridgraph
        self.estimator = None
        self.neighborhood_graph = None

        self.points = None
        self.point_number = 0
        self.sample_number = 0
        self.truncated_threshold = 1.5 * self.settings.threshold   # 3 / 2 * threshold_

        # 全局采样器和局部采样器
        self.main_sampler = None
        self.local_optimization_sampler = None

        # 模型评估的评分函数
        self.scoring_function = MSACScoringFunction()
        self.local_optimizer = None
        self.termination = None

    def run(self,
            points,
            estimator,
            main_sampler=None,
            neighborhood_graph=None):
        """ 运行 GC-RANSAC 求解过程

        参数
        ----------
        points : numpy
            输入的 N x 4 点对集合，运行期间不会被修改
        estimator : Estimator
            模型的估计器
        main_sampler : Sampler 可选
            全局采样器，默认为按 random_seed 初始化的均匀采样器
        neighborhood_graph : GridNeighborhoodGraph 可选
            构建的领域图，默认按设置的半径构建

        返回
        ----------
        Model, list(int)
            求解的最佳模型和内点序号列表，没有找到有效模型时为 None, []
        """
        # 初始化参数赋值，输入错误在任何迭代开始前抛出
        self.points = self.__checkInput(points, estimator)
        self.point_number = np.shape(self.points)[0]
        self.sample_number = estimator.sampleSize()
        self.estimator = estimator
        # 计时从这里开始，领域图构建也计入运行时间限制
        self.termination = TerminationCriterion(self.settings, self.point_number, self.sample_number)
        self.termination.start()

        self.statistics = Statistics()
        self.state = State.RUNNING
        logger.debug("GC-RANSAC started on %d correspondences with %s",
                     self.point_number, type(estimator).__name__)

        try:
            with WorkerPool(self.settings.core_number) as pool:
                self.scoring_function.initialize(self.settings.threshold, self.point_number, pool)

                # A ← Build neighborhood-graph using r.
                if neighborhood_graph is None:
                    neighborhood_graph = GridNeighborhoodGraph(self.points,
                                                               self.settings.neighborhood_sphere_radius,
                                                               space=self.settings.neighborhood_space,
                                                               pool=pool)
                elif len(neighborhood_graph) != self.point_number:
                    raise InvalidInputError("neighborhood graph does not match the correspondences")
                self.neighborhood_graph = neighborhood_graph
                self.statistics.neighbor_number = neighborhood_graph.neighbor_number

                seed = self.settings.random_seed
                self.main_sampler = main_sampler if main_sampler is not None else \
                    UniformSampler(self.points, random_seed=seed)
                self.local_optimization_sampler = UniformSampler(
                    self.points, random_seed=None if seed is None else seed + 1)
                self.local_optimizer = GraphCutLocalOptimizer(self.estimator,
                                                              self.neighborhood_graph,
                                                              self.scoring_function,
                                                              self.settings,
                                                              sampler=self.local_optimization_sampler)

                model, inliers = self.__mainLoop()
        finally:
            self.state = State.TERMINATED

        # Output: θ - model parameters; L – labeling
        return model, inliers

    def __mainLoop(self):
        points = self.points
        statistics = self.statistics
        settings = self.settings

        ''' The main RANSAC iteration '''

        # 记录全局的最佳模型，得分，内点集合
        so_far_the_best_model = None
        so_far_the_best_score = Score()
        so_far_the_best_inliers = []
        # 当前最佳模型是否已经做过局部优化
        best_is_optimized = True

        # 初始化采样池
        pool = list(range(self.point_number))

        # for k = 1 →H(|L∗|, µ) do
        while not self.termination.shouldStop(statistics.iteration_number):
            # 增加迭代计算次数
            statistics.iteration_number += 1
            lo_allowed = settings.do_local_optimization and \
                statistics.iteration_number >= settings.min_iteration_number_before_lo

            # Sk ← Draw a minimal sample
            sample = self.main_sampler.sample(pool, self.sample_number)
            # 检查采样是否有效，无效则重新采样
            if len(sample) < self.sample_number or \
                    not self.estimator.isValidSample(points, sample, threshold=settings.threshold):
                statistics.degenerate_sample_number += 1
                continue

            # θk ← Estimate a model using Sk
            models = self.estimator.estimateModel(points, sample)
            if len(models) == 0:
                statistics.degenerate_sample_number += 1
                continue

            for model in models:
                # wk ← Compute the support of θk
                squared_residuals = self.scoring_function.getSquaredResiduals(points, model, self.estimator)
                score, inliers = self.scoring_function.getScore(points, model, self.estimator, squared_residuals)
                if not score > so_far_the_best_score:
                    continue

                # 检查模型是否有效，无效则丢弃
                if not self.estimator.isValidModel(model,
                                                   data=points,
                                                   inliers=inliers,
                                                   minimal_sample=sample,
                                                   threshold=settings.threshold):
                    statistics.invalid_model_number += 1
                    continue

                # θLO, LLO, wLO ← Local opt.
                candidate = (model, inliers, score)
                if lo_allowed:
                    result = self.__localOptimization(model, inliers, score, squared_residuals)
                    if result is not None:
                        candidate = result

                # if wk > w∗ then θ∗, L∗, w∗ ← θk, Lk, wk
                if candidate[2] > so_far_the_best_score:
                    so_far_the_best_model, so_far_the_best_inliers, so_far_the_best_score = candidate
                    best_is_optimized = lo_allowed
                    self.__acceptBest(so_far_the_best_score)

            # 接受时还不能做局部优化的最佳模型，在允许后补做一次
            if lo_allowed and not best_is_optimized and so_far_the_best_model is not None:
                best_is_optimized = True
                result = self.__localOptimization(so_far_the_best_model,
                                                  so_far_the_best_inliers,
                                                  so_far_the_best_score)
                if result is not None and result[2] > so_far_the_best_score:
                    so_far_the_best_model, so_far_the_best_inliers, so_far_the_best_score = result
                    self.__acceptBest(so_far_the_best_score)

        statistics.time_limit_reached = self.termination.time_limit_reached
        if statistics.time_limit_reached:
            logger.debug("Time limit reached after %d iterations, returning the best model so far",
                         statistics.iteration_number)

        if so_far_the_best_model is not None:
            # θ∗, L∗, w∗ ← Local opt.
            if settings.do_local_optimization:
                result = self.__localOptimization(so_far_the_best_model,
                                                  so_far_the_best_inliers,
                                                  so_far_the_best_score)
                if result is not None and result[2] > so_far_the_best_score:
                    so_far_the_best_model, so_far_the_best_inliers, so_far_the_best_score = result
                    self.__acceptBest(so_far_the_best_score, update_bound=False)

            # θ∗ ← least squares model fitting using L∗.
            if settings.do_final_iterated_least_squares:
                result = self.__iteratedLeastSquaresFitting(so_far_the_best_model,
                                                            so_far_the_best_inliers,
                                                            so_far_the_best_score)
                if result is not None and result[2] > so_far_the_best_score:
                    so_far_the_best_model, so_far_the_best_inliers, so_far_the_best_score = result
                    self.__acceptBest(so_far_the_best_score, update_bound=False)

        statistics.inliers = list(so_far_the_best_inliers)
        statistics.inlier_number = len(so_far_the_best_inliers)
        statistics.processing_time = self.termination.elapsedTime()
        logger.debug("GC-RANSAC finished: %r", statistics)
        return so_far_the_best_model, list(so_far_the_best_inliers)

    def __acceptBest(self, score, update_bound=True):
        self.statistics.best_inlier_numbers.append(score.inlier_number)
        if update_bound:
            # 更新最大迭代数
            max_iteration = self.termination.update(score.inlier_number)
            logger.debug("Iteration %d: new best model with %d inliers, iteration bound %d",
                         self.statistics.iteration_number, score.inlier_number, max_iteration)

    def __localOptimization(self,
                            so_far_the_best_model,
                            so_far_the_best_inliers,
                            so_far_the_best_score,
                            squared_residuals=None):
        """ 运行图割局部优化，图割失败时保持原有最佳模型不变

        返回
        ----------
        (Model, list, Score) 或 None
            局部优化得到的更好的模型，最佳内点，最佳得分
        """
        try:
            return self.local_optimizer.run(self.points,
                                            so_far_the_best_model,
                                            so_far_the_best_inliers,
                                            so_far_the_best_score,
                                            self.statistics,
                                            squared_residuals=squared_residuals)
        except OptimizationFailure as error:
            self.statistics.failed_local_optimization_number += 1
            logger.debug("Local optimization failed: %s", error)
            return None

    def __iteratedLeastSquaresFitting(self,
                                      so_far_the_best_model,
                                      so_far_the_best_inliers,
                                      so_far_the_best_score,
                                      use_weighting=True):
        """ 通过迭代加权最小二乘法拟合模型

        参数
        ----------
        so_far_the_best_model : Model
            最佳模型参数
        so_far_the_best_inliers : list
            最佳内点序号列表
        so_far_the_best_score : Score
            最佳模型评估得分
        use_weighting : bool
            是否使用加权进行最小二乘拟合模型

        返回
        ----------
        (Model, list, Score) 或 None
            更好的拟合结果，没有改进时为 None
        """
        if len(so_far_the_best_inliers) < self.estimator.nonMinimalSampleSize():
            return None

        squared_truncated_threshold = self.truncated_threshold ** 2
        improved = False
        for _ in range(self.settings.max_least_squares_iterations):
            # 如果有权重，则输入权重，否则输入 None
            weights = None
            if use_weighting and self.estimator.isWeightingApplicable():
                squared_residuals = self.scoring_function.getSquaredResiduals(
                    self.points, so_far_the_best_model, self.estimator)
                weights = np.maximum(0.0, 1.0 - squared_residuals / squared_truncated_threshold) ** 2

            # 通过内点和权重估计模型
            models = self.estimator.estimateModelNonminimal(self.points,
                                                            so_far_the_best_inliers,
                                                            len(so_far_the_best_inliers),
                                                            weights=weights)
            updated = False
            for model in models:
                # 计算当前模型的得分和内点集合
                score, inliers = self.scoring_function.getScore(self.points, model, self.estimator)
                # 如果模型没有变好，则继续
                if not score > so_far_the_best_score:
                    continue
                if not self.estimator.isValidModel(model,
                                                   data=self.points,
                                                   inliers=inliers,
                                                   threshold=self.settings.threshold):
                    continue
                so_far_the_best_model = model
                so_far_the_best_inliers = inliers
                so_far_the_best_score = score
                updated = improved = True

            # 如果模型未被更新，则中断程序
            if not updated:
                break

        if not improved:
            return None
        return so_far_the_best_model, so_far_the_best_inliers, so_far_the_best_score

    @staticmethod
    def __checkInput(points, estimator):
        """ 检查输入点集，返回只读的浮点数组 """
        points = np.array(points, dtype=float)
        if points.ndim != 2 or np.shape(points)[1] != 4:
            raise InvalidInputError(f"correspondences must be an N x 4 array, got shape {np.shape(points)}")
        if not np.all(np.isfinite(points)):
            raise InvalidInputError("correspondences contain non-finite coordinates")
        if np.shape(points)[0] < estimator.sampleSize():
            raise EmptyInputError(f"{np.shape(points)[0]} correspondences are fewer than "
                                  f"the minimal sample size {estimator.sampleSize()}")
        points.setflags(write=False)
        return points
