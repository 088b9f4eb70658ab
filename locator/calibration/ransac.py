"""RANSAC implementation for robust estimation."""

import math
import numpy as np
from typing import Tuple, Optional


class RANSAC:
    """RANSAC algorithm for outlier rejection."""
    
    def __init__(self, threshold: float = 5.0, max_iters: int = 2000,
                 min_samples: int = 4, min_inliers: Optional[int] = None,
                 confidence: float = 0.995, seed=None):
        self.threshold = threshold
        self.max_iters = max_iters
        self.min_samples = min_samples
        self.min_inliers = min_samples if min_inliers is None else min_inliers
        self.confidence = confidence
        self.rng = np.random.default_rng(seed)
    
    def fit(self, data: np.ndarray, model_func, score_func) -> Tuple[Optional[object], np.ndarray]:
        """
        Fit model using RANSAC.
        
        Args:
            data: Samples, one per row
            model_func: Builds a model from a minimal sample, or returns None if degenerate
            score_func: Per-row residuals of data under a model
            
        Returns:
            Tuple of (best model or None, boolean inlier mask)
        """
        n_samples = len(data)
        if n_samples < self.min_samples:
            return None, np.array([], dtype=bool)
        
        best_model = None
        best_inliers = np.zeros(n_samples, dtype=bool)
        best_score = -1
        iters_needed = self.max_iters
        
        iteration = 0
        while iteration < iters_needed:
            iteration += 1
            indices = self.rng.choice(n_samples, self.min_samples, replace=False)
            sample = data[indices]
            
            model = model_func(sample)
            if model is None:
                continue
            
            scores = score_func(data, model)
            inliers = scores < self.threshold
            score = int(np.sum(inliers))
            
            # Strict comparison keeps the first model found on ties
            if score > best_score:
                best_score = score
                best_model = model
                best_inliers = inliers
                iters_needed = min(iters_needed, self._update_num_iters(score, n_samples))
        
        if best_model is None or best_score < self.min_inliers:
            return None, np.zeros(n_samples, dtype=bool)
        
        return best_model, best_inliers
    
    def _update_num_iters(self, n_inliers: int, n_samples: int) -> int:
        """Iterations needed to draw one all-inlier sample with the configured confidence."""
        if n_inliers == 0 or self.confidence >= 1.0:
            return self.max_iters
        inlier_ratio = n_inliers / n_samples
        p_good = inlier_ratio ** self.min_samples
        if p_good >= 1.0:
            return 1
        denom = math.log(1.0 - p_good)
        if denom == 0:
            return self.max_iters
        needed = math.log(1.0 - self.confidence) / denom
        return max(1, min(self.max_iters, int(math.ceil(needed))))
