from setuptools import setup, find_packages

from platearm.__version__ import __version__

with open("README.md", "r", encoding="utf-8") as f:
  long_description = f.read()


extras_serial = [
  "pyserial"
]

extras_dev = extras_serial + [
  "pytest",
  "pytest-timeout",
  "pylint",
  "mypy",
]

extras_all = extras_dev

setup(
  name="PlateArm",
  version=__version__,
  packages=find_packages(include=["platearm", "platearm.*"]),
  description="Task execution and network task ingestion for a liquid handling arm",
  long_description=long_description,
  long_description_content_type="text/markdown",
  python_requires=">=3.10",
  install_requires=["typing_extensions"],
  package_data={"platearm": ["version.txt"]},
  extras_require={
    "serial": extras_serial,
    "dev": extras_dev,
    "all": extras_all,
  },
  entry_points={
    "console_scripts": [
      "platearm-server=platearm.server.arm_server:main",
    ],
  }
)
