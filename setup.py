from setuptools import find_packages, setup

setup(
    name="scopepost",
    version="0.1.0",
    description="Post-processing of digital storage oscilloscope acquisitions: math channels, spectrum and frequency analysis.",
    author="scopepost contributors",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy",
        "scipy",
        "pandas",
        "soundfile",
        "click",
        "tabulate",
        "toml",
        "pydantic>=2",
        "rich",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-mock",
        ],
    },
    entry_points={
        "console_scripts": [
            "scopepost=scopepost.cli.main:cli",
        ],
    },
)
