# Configuration file for the Sphinx documentation builder.
#
# For the full list of built-in configuration values, see the documentation:
# https://www.sphinx-doc.org/en/master/usage/configuration.html

import os
import sys
import datetime

sys.path.insert(0, os.path.abspath('../..'))

import importlib.metadata as metadata

# -- Project information -----------------------------------------------------

project = 'ebunfold'
current_year = datetime.date.today().year
copyright = f'2022-{current_year}, CentraleSupelec'
author = 'Emmanuel Vazquez'
release = metadata.version('ebunfold')
language = "en"

# -- General configuration ---------------------------------------------------

extensions = [
    "sphinx.ext.autodoc",
    "sphinx.ext.autosummary",
    'sphinx.ext.intersphinx',
    "sphinx.ext.napoleon",
    "numpydoc",
    'sphinx.ext.viewcode',
    "sphinx.ext.mathjax"
]

templates_path = ['_templates']
source_suffix = [".rst", ".md"]
exclude_patterns = ["images"]

# -- Extensions -------------------------------------------------------------

autosummary_generate = True
numpydoc_class_members_toctree = False
intersphinx_mapping = {
    "numpy": ("https://numpy.org/doc/stable/", None),
    "scipy": ("https://docs.scipy.org/doc/scipy/", None),
}

# -- Options for HTML output -------------------------------------------------

html_theme = 'alabaster'
html_static_path = ["_static"]
html_theme_options = {
    "logo_name": True,
    "description": "Empirical-Bayes regularized unfolding",
    "font_family": "'Roboto', Georgia, sans",
    "head_font_family": "'Roboto', Georgia, serif",
    "code_font_family": "'Roboto Mono', 'Consolas', monospace",
}
