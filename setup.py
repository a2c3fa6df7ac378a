# -*- coding: utf-8 -*-

from setuptools import setup, find_packages


setup(
    name="midichart",
    version="0.1.0",
    description="Converts Standard MIDI Files into quantized note chart scores for rhythm games",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tools"]),
    python_requires=">=3.8",
    install_requires=[
        "mido",
        "more-itertools",
        "parameterized",
    ],
    entry_points={"console_scripts": []},
    scripts=["tools/midiToScore.py"],
    classifiers=[
        "Environment :: Console",
        "Intended Audience :: Developers",
        'License :: OSI Approved :: MIT License',
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: Implementation :: CPython",
    ],
)
