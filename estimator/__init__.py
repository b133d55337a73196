from .estimator import Estimator
from .estimator_essential import EstimatorEssential
from .estimator_fundamental import EstimatorFundamental
from .estimator_homography import EstimatorHomography
