#!/usr/bin/env python
"""Package configuration."""
from setuptools import find_packages, setup


with open('README.rst', 'r') as readme:
    long_description = readme.read()

# Extra dependencies
extras_require = {
    # Test dependencies
    'tests': [
        'bandit',
        'flake8',
        'flake8-import-order',
        'mypy',
        'pytest-cov',
        'pytest-xdist',
        'pytest',
        'sphinx_rtd_theme',
        'sphinx-argparse',
        'sphinx-autodoc-typehints',
        'Sphinx',
    ],
    'prospector': [
        'prospector[with_everything]',
        'pytest',
    ],
}

setup(
    author='The jsoncrawler developers',
    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Intended Audience :: Developers',
        'Intended Audience :: Information Technology',
        'Intended Audience :: System Administrators',
        'License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Programming Language :: Python :: 3 :: Only',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'Topic :: Text Processing',
        'Topic :: Utilities',
        'Typing :: Typed',
    ],
    description=('jsoncrawler is a Python package to select and extract data from JSON documents and JSON-like '
                 'objects, using the JSONPath syntax defined in RFC 9535.'),
    entry_points={
        'console_scripts': [
            'jsoncrawler = jsoncrawler._cli:cli',
        ],
    },
    extras_require=extras_require,
    install_requires=[],
    keywords=['jsonpath', 'json', 'rfc9535'],
    license='GPLv3+',
    long_description=long_description,
    long_description_content_type='text/x-rst',
    name='jsoncrawler',
    package_data={'jsoncrawler': ['py.typed']},
    packages=find_packages(exclude=['tests', 'tests.*']),
    platforms=['GNU/Linux', 'BSD', 'MacOSX'],
    python_requires='>=3.9',
    version='0.1.0',
    zip_safe=False,
)
