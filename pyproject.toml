[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "distlogreg"
version = "0.1.0"
description = "Distributed L1-regularized logistic regression: naive averaging, CSL and DANE updates, with lambda sweep commands"
requires-python = ">=3.10"
dependencies = [
    "numpy",
    "scipy",
]
keywords = [
    "logistic regression",
    "lasso",
    "l1 regularization",
    "distributed optimization",
    "model averaging",
    "csl",
    "dane",
    "owl-qn",
    "libsvm",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
sweep-lr = "distlogreg.sweep:lr_main"
sweep-naive-avg = "distlogreg.sweep:naive_avg_main"
sweep-csl = "distlogreg.sweep_global:csl_main"
sweep-dane = "distlogreg.sweep_global:dane_main"

[tool.hatch.build.targets.wheel]
packages = ["distlogreg"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
