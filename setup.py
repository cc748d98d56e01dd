"""Package setup for fritz_nas."""

from setuptools import setup, find_packages

setup(
    name="fritz-nas",
    version="1.0.0",
    description="Client for the NAS storage API of FRITZ!Box routers",
    packages=find_packages(include=["fritz_nas", "fritz_nas.*"]),
    python_requires=">=3.10",
    install_requires=[
        "requests>=2.31.0",
        "beautifulsoup4>=4.12.0",
        "lxml>=5.0.0",
        "urllib3>=2.0.0",
        "colorlog>=6.8.0",
        "tqdm>=4.66.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "fritz-nas=fritz_nas.cli:main",
        ],
    },
)
