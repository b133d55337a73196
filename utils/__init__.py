from .exceptions import (DegenerateSampleError, EmptyInputError,
                         EstimationFailure, GCRANSACError,
                         InvalidConfigurationError, InvalidInputError,
                         OptimizationFailure)
from .parallel import WorkerPool
from .score import MSACScoringFunction, Score
from .uniform_random_generator import UniformRandomGenerator
