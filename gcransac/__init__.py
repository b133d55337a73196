from utils.exceptions import (DegenerateSampleError, EmptyInputError,
                              EstimationFailure, GCRANSACError,
                              InvalidConfigurationError, InvalidInputError,
                              OptimizationFailure)

from .gcransac import GCRANSAC, Settings, State, Statistics
from .gcransac_api import findEssentialMat, findFundamentalMat, findHomography
from .local_optimization import GraphCutLocalOptimizer
from .termination import TerminationCriterion
