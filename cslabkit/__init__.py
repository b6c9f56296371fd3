"""Image-kernel benchmark driver with clock-based timing, and a tiny job-control shell."""

__version__ = "0.1.0"