from .grid_neighborhood_graph import NEIGHBORHOOD_SPACES, GridNeighborhoodGraph
