"""
mdproc - Resource synchronizer for wiki text classes

Installation:
    pip install -e .

This installs the 'mdproc' command globally in your environment.
"""

from setuptools import setup, find_packages
import os

# Read README for long description
long_description = ''
if os.path.exists('README.md'):
    with open('README.md', 'r', encoding='utf-8') as f:
        long_description = f.read()

setup(
    name='mdproc',
    version='1.0.0',
    description='Localize resources linked from markdown text classes',
    long_description=long_description,
    long_description_content_type='text/markdown',
    author='Dale Chapman',
    author_email='',  # Add your email if desired
    license='MIT',

    # Find all packages (mdproc/ and any subpackages)
    packages=find_packages(exclude=['tests', 'tests.*', 'docs', 'sync']),

    include_package_data=True,

    # Python version requirement
    python_requires='>=3.9',

    # Dependencies
    install_requires=[
        'click>=8.0',
        'PyYAML>=6.0',
        'requests>=2.28',
        'beautifulsoup4>=4.11',
        'lxml>=4.9',
    ],

    # Optional dependencies
    extras_require={
        'dev': [
            'pytest>=7.4',
            'pytest-cov>=4.1',
            'pytest-mock>=3.11',
        ],
    },

    # CLI entry point - this creates the 'mdproc' command
    entry_points={
        'console_scripts': [
            'mdproc=mdproc.cli:cli',
        ],
    },

    # Classifiers for PyPI
    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Education',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Education',
    ],

    # Keywords for discoverability
    keywords='markdown education wiki sync scraper',
)
