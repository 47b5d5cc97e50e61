"""Camera frame post-processing stages, piecewise linear functions and YUV420 conversion helpers."""

__version__ = "1.10.0"