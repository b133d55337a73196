from .graph_cut import GraphCut
