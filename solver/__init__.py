from .solver_engine import SolverEngine
from .solver_essential_matrix_eight_point import SolverEssentialMatrixEightPoint
from .solver_fundamental_matrix_eight_point import SolverFundamentalMatrixEightPoint
from .solver_fundamental_matrix_seven_point import SolverFundamentalMatrixSevenPoint
from .solver_homography_four_point import SolverHomographyFourPoint
