[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "camproc"
version = "1.10.0"
description = "Camera frame post-processing stages, piecewise linear functions and YUV420 conversion helpers"
requires-python = ">=3.10"
keywords = ["camera", "post-processing", "yuv420", "sobel", "udp", "piecewise-linear"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Processing",
    "Topic :: Multimedia :: Graphics",
]
dependencies = [
    "numpy",
    "scipy",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["camproc"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
