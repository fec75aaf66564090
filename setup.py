from setuptools import find_packages, setup

setup(
    name="gdrive-davfs",
    version="0.1.0",
    description="Google Drive as a path-addressed filesystem for WebDAV and other protocol servers",
    author="Daniel T Sasser II",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "cachetools>=5.0.0",
        "google-api-python-client>=2.100.0",
        "google-auth>=2.20.0",
        "httplib2>=0.19.0",
        "requests>=2.31.0",
        "urllib3>=2.0.0",
    ],
    entry_points={
        "console_scripts": [
            "gdrive-davfs=gdrive_davfs.__main__:main",
        ],
    },
    python_requires=">=3.10",
    extras_require={
        "dev": [
            "pytest",
            "build",
            "twine",
        ],
        "test": [
            "pytest",
        ],
    },
)
