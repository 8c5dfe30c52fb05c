#!/usr/bin/env python
"""Setuptools distribution file."""
import os
from setuptools import setup


def _get_here(fname):
    return os.path.join(os.path.dirname(__file__), fname)


def _get_long_description(fname, encoding='utf8'):
    return open(fname, 'r', encoding=encoding).read()


setup(name='blinken',
      version='0.1.0',
      license='ISC',
      description="Motion-JPEG video as braille art over telnet, using asyncio",
      long_description=_get_long_description(fname=_get_here('README.rst')),
      packages=['blinken', 'blinken.tests'],
      package_data={'': ['README.rst'], },
      python_requires='>=3.9',
      install_requires=['Pillow>=9.1', 'drawille'],
      extras_require={
          'test': ['pytest', 'pytest-asyncio'],
      },
      entry_points={
         'console_scripts': [
             'blinken-server = blinken.server:main',
         ]},
      platforms='any',
      zip_safe=True,
      keywords=', '.join(('telnet', 'server', 'mjpeg', 'braille', 'ascii-art',
                          'video', 'asyncio')),
      classifiers=['License :: OSI Approved :: ISC License (ISCL)',
                   'Programming Language :: Python :: 3',
                   'Intended Audience :: Developers',
                   'Development Status :: 4 - Beta',
                   'Topic :: System :: Networking',
                   'Topic :: Terminals :: Telnet',
                   'Topic :: Multimedia :: Video :: Display',
                   ],
      )
