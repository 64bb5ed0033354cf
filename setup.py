from setuptools import setup

setup(
    name='audioinfo',
    version='20261017',
    description='Streaming metadata extraction for MP4 family audio files.',
    package_dir={'': 'lib/python'},
    packages=['audioinfo'],
    python_requires='>=3.8',
    install_requires=[
        'cs.binary',
        'cs.buffer',
        'cs.cmdutils',
        'cs.logutils',
        'cs.pfx',
        'icontract',
        'typeguard',
    ],
    entry_points={
        'console_scripts': ['m4a-info = audioinfo.m4a:main'],
    },
)
