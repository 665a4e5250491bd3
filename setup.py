from setuptools import setup, find_packages


setup(
    name="luaucx",
    version="0.1",
    packages=find_packages(include=["luaucx", "luaucx.*"]),
    description="Authenticated-encryption container format and CLI for Luau bytecode.",
    author="vercingetorx",
    python_requires=">=3.8",
    install_requires=[
        "pycryptodomex>=3.23.0",
    ],
    entry_points={
        "console_scripts": [
            "luaucx=luaucx.cli:main",
        ]
    },
)
