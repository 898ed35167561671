import os
import sys
sys.path.insert(0, os.path.abspath('../../src'))

extensions = [
    'sphinx.ext.autodoc',
    'sphinx.ext.viewcode',
    'sphinx.ext.napoleon',
    'numpydoc',
    'sphinx_autodoc_typehints',
]

html_theme = 'sphinx_rtd_theme'
numpydoc_show_class_members = False

# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

# -- Project information -----------------------------------------------------

project = 'formulaplot'
copyright = '2025, formulaplot developers'
author = 'formulaplot developers'
release = '0.1.0'

# -- General configuration ---------------------------------------------------

templates_path = ['_templates']
exclude_patterns = []

# -- Options for HTML output -------------------------------------------------

html_static_path = ['_static']
