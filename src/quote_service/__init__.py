"""HTTP quote proxy for the portfolio allocator."""
