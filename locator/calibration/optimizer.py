"""Homography optimization using Levenberg-Marquardt."""

import numpy as np
from scipy.optimize import least_squares


class HomographyOptimizer:
    """Refine homography matrix using non-linear optimization."""
    
    def __init__(self, max_iters: int = 500):
        self.max_iters = max_iters
    
    def optimize(self, H: np.ndarray, src_points: np.ndarray, 
                dst_points: np.ndarray) -> np.ndarray:
        """Minimize forward reprojection error over the 8 free entries of H."""
        H = H / H[2, 2]
        h_params = H.flatten()[:8]
        
        def residuals(params):
            H_opt = self._params_to_matrix(params)
            transformed = self._transform_points(src_points, H_opt)
            return (transformed - dst_points).flatten()
        
        # 'lm' needs at least as many residuals as parameters
        method = 'lm' if 2 * len(src_points) >= 8 else 'trf'
        result = least_squares(residuals, h_params, method=method, max_nfev=self.max_iters)
        return self._params_to_matrix(result.x)
    
    def _params_to_matrix(self, params: np.ndarray) -> np.ndarray:
        return np.append(params, 1).reshape(3, 3)
    
    def _transform_points(self, points: np.ndarray, H: np.ndarray) -> np.ndarray:
        points_h = np.hstack([points, np.ones((points.shape[0], 1))])
        transformed = (H @ points_h.T).T
        return transformed[:, :2] / transformed[:, 2:]
