from __future__ import annotations

from pathlib import Path

from setuptools import find_packages, setup  # type: ignore


ROOT = Path(__file__).resolve().parent


setup(
    name="animopt",
    version="0.1.0",
    description="Hierarchical keyframe decimation for offline skeletal animations",
    python_requires=">=3.11",
    package_dir={"": "src"},
    packages=find_packages(where=str(ROOT / "src")),
    install_requires=[
        "numpy",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
