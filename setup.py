# Copyright 2026 XMOS LIMITED.
# This Software is subject to the terms of the XMOS Public Licence: Version 1.
from setuptools import setup

setup(
    name="si5351_pll",
    version="1.0.0",
    packages=["si5351_pll"],
    package_dir={
        "": "python"
    },
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "matplotlib",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "si5351_pll_calc=si5351_pll.pll_calc:main",
        ]
    }
)
