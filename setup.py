#!/usr/bin/env python

import sys

from setuptools import setup, find_packages
from releasetool import __version__

if sys.version_info < (3, 6):
    error = "ERROR: releasetool requires Python Version 3.6 or above...exiting."
    print(error, file=sys.stderr)
    sys.exit(1)

def readme():
    with open("README.rst") as f:
        return f.read()

setup(
    name='releasetool',
    version=__version__,
    packages=find_packages(exclude=['tests', 'tests.*']),

    install_requires=[
        'Fabric>=2.5',
        'invoke>=1.4',
        'python-dateutil>=2.2',
        'semantic-version>=2.8',
        'PyYAML>=3.10',
        'glob2>=0.4.1',
        'jenkinsapi>=0.3.11',
        'requests>=2.20',
        'jira>=3.0',
        'atlassian-python-api>=3.0',
        'tweepy>=4.0',
    ],

    extras_require={
        'test': [
            'mock>=3.0',
            'pytest>=6.0',
        ],
    },

    author='Marko Kirves',
    author_email='marko.kirves@thisisdare.com',
    description='Fabric tasks for JIRA, Confluence, GitHub, Twitter and InfluxDB release chores in Jenkins builds',
    long_description=readme(),
)
