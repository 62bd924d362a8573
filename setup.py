from setuptools import find_packages, setup

setup(
    name="hookrelay",
    version="0.1.0",
    description="Hook dispatch engine with settle-once enforcement for plugin hook functions",
    packages=find_packages(include=["hookrelay", "hookrelay.*"]),
    include_package_data=True,
    python_requires=">=3.11",
    install_requires=[
        "pydantic>=2",
        "PyYAML>=6",
    ],
    extras_require={
        "test": [
            "pytest>=7",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "hookrelay=hookrelay.cli:main",
        ],
    },
)
