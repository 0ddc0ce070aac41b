from setuptools import setup, find_packages

setup(
   name='GEMS',
   version='0.1',
   description='Python implementation of a global energy market share model',
   author='GEMS Developers',
   packages=find_packages(include=['GEMS', 'GEMS.*']),
   install_requires=['networkx',
                     'numpy',
                     'pandas>=1.2',
                     'scipy',
                     ],  # external packages as dependencies
   extras_require={'test': ['pytest']},
)
