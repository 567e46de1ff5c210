from setuptools import setup, find_namespace_packages

with open('requirements.txt') as f:
    required = f.read().splitlines()

setup(
    name='ghostcell',
    version='0.1',
    packages=find_namespace_packages(include=['ghostcell', 'ghostcell.*']),
    description='A bot engine for two-player Ghost in the Cell style factory conquest matches.',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    python_requires='>=3.8',
    install_requires=required,
    extras_require={'test': ['pytest']},
    entry_points={'console_scripts': ['ghostcell=ghostcell.bot:main']},
)
