import os

import setuptools
from setuptools import find_packages

root = os.path.abspath(os.path.dirname(__file__))

with open(os.path.join(root, "README.md"), "r", encoding="utf-8") as fh:
    long_description = fh.read()

version = {}
with open(os.path.join(root, "nest_network", "version.py"), "r") as fh:
    exec(fh.read(), version)


def read_requirements(path):
    if not isinstance(path, list):
        path = [path]
    requirements = []
    for p in path:
        with open(os.path.join(root, p)) as fh:
            requirements.extend(
                [line.strip() for line in fh if line.strip() and not line.startswith("#")]
            )
    return requirements


setuptools.setup(
    name="nest-network",
    version=version["__version__"],
    description="Declarative HTTP requests: describe a request as a value, get back raw response bytes.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(
        where=root,
        exclude=(
            "requirements",
            "tests",
            "tests.*",
        ),
    ),
    install_requires=read_requirements(["requirements/requirements.http.txt"]),
    extras_require={
        "test": read_requirements("requirements/requirements.test.unit.txt"),
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: Apache Software License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.8",
)
