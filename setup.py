from setuptools import setup, find_packages

setup(
    name="assetflip",
    version="0.1.0",
    packages=find_packages(exclude=["assetflip.tests", "assetflip.tests.*"]),
    py_modules=["cli"],
    install_requires=[
        "boto3",
        "botocore",
        "requests",
    ],
    extras_require={
        "test": [
            "pytest",
            "moto[s3,ssm]>=5",
        ],
    },
    entry_points={
        'console_scripts': [
            'assetflip=cli:main',
        ],
    },
    description="Publish versioned frontend builds to S3 and release them through SSM Parameter Store",
    python_requires='>=3.8',
)
