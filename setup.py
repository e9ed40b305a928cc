from setuptools import setup, find_packages

setup(
    name="FirePM",
    version="0.1.0",
    packages=find_packages(include=["firepm", "firepm.*"]),
    install_requires=[
        "numpy",
        "pandas",
        "matplotlib",
        "scipy",
    ],
    extras_require={
        "progress": ["tqdm"],
        "test": ["pytest"],
    },
    author="FirePM developers",
    description="Sensitivity and response-surface analysis of fire simulations",
)
