from setuptools import setup, find_packages


setup(
    name="shaderpack",
    version="0.1",
    packages=find_packages(include=["shaderpack", "shaderpack.*"]),
    description="Codec and CLI for TEA-encrypted, MD5-verified game shader archives.",
    author="vercingetorx",
    install_requires=[
        "pycryptodomex>=3.23.0",
    ],
    entry_points={
        "console_scripts": [
            "shaderpack=shaderpack.cli:main",
        ]
    },
)
