"""Install the dflog package from python/."""

from setuptools import setup, find_packages

setup(
    name="dflog",
    version="0.1.0",
    description="Text dataflash log decoder and tooling",
    python_requires=">=3.9",
    package_dir={"": "python"},
    packages=find_packages("python"),
    install_requires=["numpy"],
    extras_require={
        "serial": ["pyserial"],
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["dflog = dflog.cli:main"],
    },
)
