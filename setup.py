import os
from bundlestream import __name__, __version__
from setuptools import setup, find_packages

BASE = os.path.dirname(__file__)
with open(os.path.join(BASE, 'README.md'), encoding='utf-8') as fh:
    long_description = fh.read()


setup(
    name=__name__,
    version=__version__,
    description="Streaming conversion and encryption of e-book and web content bundles",
    long_description=long_description,
    long_description_content_type="text/markdown",
    keywords="bundle epub zip encryption",
    license='MIT',
    python_requires='>=3.8',
    packages=find_packages(exclude=('tests', 'tests.*')),
    package_data={
        'bundlestream': ['formats/web/data/*/*'],
    },
    zip_safe=False,
    entry_points={
        'console_scripts': [
            'bundleinfo=bundlestream.cli:bundleinfo_main',
            'makebundle=bundlestream.cli:makebundle_main',
        ],
    },
    install_requires=[
        'appdirs>=1.4.3',
        'cryptography>=3.1',
        'pyyaml>=5.3.1',
    ],
    extras_require={
        'lint': [
            'pylint'
        ],
        'test': [
            'coverage',
        ],
    },
    classifiers=[
        'Framework :: AsyncIO',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'Topic :: Utilities',
    ],
)
