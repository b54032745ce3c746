from setuptools import setup, find_packages


setup(
    name="hpiarc",
    version="0.1",
    packages=find_packages(include=["hpiarc", "hpiarc.*"]),
    description="Reader for HAPI (.hpi) game asset archives with transparent de-scrambling.",
    author="hpiarc contributors",
    python_requires=">=3.8",
)
