import setuptools
from os.path import join, dirname

def get_file_contents(filename):
    package_directory = dirname(__file__)
    with open(join(package_directory, filename), 'r', encoding='utf-8') as file:
        contents = file.read()
    return contents

long_description = """Tutorial chapters on the spatial analysis of multiplex immunofluorescence images, and the
library of thin helpers they use: reshaping imaging experiments into cell tables, Ripley's K, L
and G functions per image, normalization of marker intensities across slides, and functional
survival models of spatial summaries.
"""
version = get_file_contents(join('spatialmif', 'version.txt')).strip()

setuptools.setup(
    name='spatialmif',
    version=version,
    description='Teaching site and helpers for spatial analysis of multiplex immunofluorescence data.',
    long_description=long_description,
    long_description_content_type='text/markdown',
    packages=[
        'spatialmif',
        'spatialmif.entry_point',
        'spatialmif.standalone_utilities',
        'spatialmif.datasets',
        'spatialmif.datasets.scripts',
        'spatialmif.spatial',
        'spatialmif.spatial.scripts',
        'spatialmif.normalization',
        'spatialmif.normalization.scripts',
        'spatialmif.survival',
        'spatialmif.survival.scripts',
        'spatialmif.plotting',
        'spatialmif.site',
        'spatialmif.site.scripts',
    ],
    classifiers=[
        'Programming Language :: Python :: 3',
        'Topic :: Scientific/Engineering',
        'Intended Audience :: Science/Research',
        'Intended Audience :: Education',
    ],
    package_data={
        'spatialmif': [
            'version.txt',
        ],
        'spatialmif.site': [
            'templates/page.html.jinja',
            'templates/index.html.jinja',
            'chapters/01_data.py',
            'chapters/02_images.py',
            'chapters/03_spatial.py',
            'chapters/04_normalization.py',
            'chapters/05_survival.py',
        ],
    },
    python_requires='>=3.10',
    entry_points={
        'console_scripts' : [
            'spatialmif = spatialmif.entry_point.cli:main_program',
        ]
    },
    install_requires=[
        'numpy>=1.24',
        'pandas>=1.5',
        'scipy>=1.10',
        'scikit-learn>=1.2',
        'attrs>=22.2',
        'anndata>=0.9',
        'scanpy>=1.9',
        'squidpy>=1.2',
        'scikit-image>=0.20',
        'statsmodels>=0.14',
        'umap-learn>=0.5.3',
        'lifelines>=0.27',
        'tifffile>=2023.2.3',
        'matplotlib>=3.7',
        'seaborn>=0.12',
        'Jinja2>=3.1',
        'Markdown>=3.4',
    ],
    extras_require={
        'test': ['pytest>=7.0'],
    },
)
