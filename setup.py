#

import os
from setuptools import setup
import sys

# Yapps doesn't seem to install
# properly without this.
sys.dont_write_bytecode = True

here = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(here, "README.md"), "rt") as f:
    long_description = f.read()
long_description_content_type = "text/markdown"

# Load the package's __version__.py module as a dictionary.
about = {}
with open(os.path.join(here, "fsmlc", "__version__.py")) as f:
    exec(f.read(), about)

setup(
    name="fsmlc",
    description="fsmlc: compiles FSML state machine descriptions to C.",
    version=about["__version__"],
    packages=["fsmlc"],
    install_requires=[
        "yapps",
        "jinja2",
        "pyyaml",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
    entry_points={
        "console_scripts": [
            "fsmlc=fsmlc.__main__:main",
        ],
    },
    long_description=long_description,
    long_description_content_type=long_description_content_type,
    test_suite="tests",
    license="GPLv3",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Programming Language :: C",
        "Programming Language :: Python",
        "Programming Language :: Python :: 3",
    ],
)
