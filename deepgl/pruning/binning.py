"""
Binning Module.

Discretizes feature columns before redundancy comparison.

Logarithmic binning (the default) works on ranks, not magnitudes. With
alpha = 0.5, the lowest half of the nodes (by value) gets bin 0, the lowest
half of the remainder bin 1, and so on:

    bin(v) = floor( log(1 - rank(v) / N) / log(1 - alpha) )

Tied values share the lowest rank of their group, so equal values always land
in the same bin. Only the order of values matters, which makes the result
insensitive to scale, skew and sign.

Non-finite entries are ranked as finite ones before binning: NaN as 0 and
+/-inf as the largest/smallest float64, so every bin number is finite.
"""

import math
import torch


class Binner:
    """
    Per-column discretization of an embedding matrix, in place.

    Example:
        >>> binner = Binner(alpha=0.5)
        >>> binner.log_bins(matrix)   # matrix now holds bin numbers
    """

    def __init__(self, alpha: float = 0.5):
        """
        Initialize binner.

        Args:
            alpha: Fraction of the remaining nodes assigned to each bin
        """
        if not 0.0 < alpha < 1.0:
            raise ValueError(f"alpha must be in (0, 1), got {alpha}")
        self.alpha = alpha

    def log_bins(self, matrix: torch.Tensor) -> torch.Tensor:
        """
        Replace every column by its logarithmic bin numbers.

        Args:
            matrix: Embedding matrix [N, F], modified in place

        Returns:
            The same matrix
        """
        num_nodes = matrix.shape[0]
        if num_nodes == 0 or matrix.shape[1] == 0:
            return matrix

        # NaN ranks past the end of a column and would land in bin inf
        columns = torch.nan_to_num(matrix.t(), nan=0.0).contiguous()
        sorted_columns = columns.sort(dim=1).values
        # position of the first equal value = shared rank of a tie group
        ranks = torch.searchsorted(sorted_columns, columns, right=False)

        remaining = 1.0 - ranks.to(torch.float64) / num_nodes
        ratio = torch.log(remaining) / math.log(1.0 - self.alpha)
        # exact bin boundaries (remaining == (1 - alpha)^k) must not round down
        bins = torch.floor(ratio + 1e-9)
        # floor(-0.0) keeps the sign bit
        bins = bins + 0.0

        matrix.copy_(bins.t())
        return matrix

    def linear_bins(self, matrix: torch.Tensor, num_bins: int) -> torch.Tensor:
        """
        Replace every column by equal-width bin numbers in [0, num_bins).

        Constant columns map to bin 0.

        Args:
            matrix: Embedding matrix [N, F], modified in place
            num_bins: Number of bins per column

        Returns:
            The same matrix
        """
        if num_bins < 1:
            raise ValueError(f"num_bins must be >= 1, got {num_bins}")
        if matrix.numel() == 0:
            return matrix

        low = matrix.min(dim=0, keepdim=True).values
        high = matrix.max(dim=0, keepdim=True).values
        width = (high - low) / num_bins
        width = torch.where(width > 0, width, torch.ones_like(width))

        bins = torch.floor((matrix - low) / width).clamp(max=num_bins - 1)
        matrix.copy_(bins)
        return matrix
