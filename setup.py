from setuptools import setup, find_packages

setup(
    name='readout_geometry_framework',
    version='0.1',
    packages=find_packages(exclude=['tests', 'tests.*']),
    install_requires=[
        'numpy',
        'awkward',
        'uproot',
    ],
    extras_require={
        'test': ['pytest'],
    },
    description='Readout geometry, daq decoding and hit to channel resolution for pixelated TPC readouts',
    python_requires='>=3.8',
)
