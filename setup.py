from setuptools import find_packages, setup

setup(
    name="versecache",
    version="1.0.0",
    packages=find_packages(include=["versecache", "versecache.*"]),
    install_requires=[line for line in open("requirements-core.txt").read().splitlines() if line],
    extras_require={"test": ["pytest>=7.0"]},
    python_requires=">=3.10",
    entry_points={
        "console_scripts": [
            "versecache=versecache.cli:main",
        ],
    },
)
