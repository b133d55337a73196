from .models import EssentialMatrix, FundamentalMatrix, Homography, Model
