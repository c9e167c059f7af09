from setuptools import setup, find_packages

setup(
    name='sygma-messaging',
    version='0.1.0',
    description='Send Sygma generic message transfers and track them to completion',
    author='Sygma Examples',
    packages=find_packages(exclude=['tests', 'tests.*', 'examples']),
    install_requires=[
        'httpx>=0.25.0',
        'eth-account>=0.13.0',
        'eth-abi>=5.0.0',
        'eth-utils>=4.0.0',
        'python-dotenv>=1.0.0',
    ],
    extras_require={
        'test': [
            'pytest>=7.4',
        ],
    },
    python_requires='>=3.8',
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.8',
        'Programming Language :: Python :: 3.9',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
    ],
)
